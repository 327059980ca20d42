"""
Centralized constants for push notifications and the HTTP surface.

Change routes, prefixes or limits here instead of scattering literals across services.
Gateway batch size / retry / timeout are env-driven (see config.Settings).
"""
API_PREFIX = "/API/v1"

# Expo push tokens come in two historical spellings
EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")

# Expo ticket error codes we act on
TICKET_DEVICE_NOT_REGISTERED = "DeviceNotRegistered"
TICKET_INVALID_CREDENTIALS = "InvalidCredentials"
TICKET_MESSAGE_TOO_BIG = "MessageTooBig"
# Synthetic codes for failures that never produced a ticket
TICKET_MISSING = "MissingTicket"
BATCH_NETWORK_ERROR = "NetworkError"
BATCH_GATEWAY_ERROR = "GatewayError"

# Push payload defaults (badge/sound are what the mobile app expects)
PUSH_SOUND = "default"
PUSH_BADGE = 1
# Comment previews in push bodies
COMMENT_PREVIEW_CHARS = 50

# Pagination for follower lists
FOLLOW_PAGE_DEFAULT_LIMIT = 20
FOLLOW_PAGE_MAX_LIMIT = 100

# Shown when a user has no profile picture, and for anonymous owners
DEFAULT_PROFILE_PICTURE = "/static/default_profile_pic.jpg"
ANONYMOUS_NAME = "Anonymous"
ANONYMOUS_USERNAME = "anonymous"

# Page sizes for the friends list and for pending / sent requests
FRIENDS_PAGE_DEFAULT_LIMIT = 50
FRIEND_REQUESTS_PAGE_DEFAULT_LIMIT = 20
FRIENDSHIP_PENDING = "pending"
FRIENDSHIP_ACCEPTED = "accepted"
FRIENDSHIP_REJECTED = "rejected"

# Location search returns at most this many matches
LOCATION_SEARCH_LIMIT = 10

# Roles allowed to publish sermons; leaders may only touch their own
ROLE_MEMBER = "member"
ROLE_LEADER = "leader"
ROLE_DEVELOPER = "developer"
SERMON_EDITOR_ROLES = (ROLE_DEVELOPER, ROLE_LEADER)

SERIES_STATUSES = ("upcoming", "ongoing", "completed")
DISCUSSION_TYPES = ("discussion", "question", "reflection")
