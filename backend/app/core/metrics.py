############################################################
#
# requestbooth - Live Event Song Request Service
#
# metrics.py: Prometheus counters for request and ban activity
#
############################################################

"""Prometheus metrics shared by the core services."""

from prometheus_client import Counter

REQUESTS_SUBMITTED = Counter(
    "requestbooth_requests_submitted_total",
    "Song requests accepted into a queue",
    ["type"],  # dj, karaoke
)
SUBMISSIONS_REJECTED = Counter(
    "requestbooth_submissions_rejected_total",
    "Song request submissions that were refused",
    ["reason"],  # banned, validation
)
BANS_ISSUED = Counter(
    "requestbooth_bans_issued_total",
    "Bans created by a DJ",
    ["kind"],  # permanent, temporary
)
EVENT_RESETS = Counter(
    "requestbooth_event_resets_total",
    "Times requests were disabled and the queue and terms cleared",
)
