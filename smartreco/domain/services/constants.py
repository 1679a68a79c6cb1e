# Constants for the recommendation algorithms.
from smartreco.domain.models.interaction import InteractionType as IT

DEFAULT_LIMIT = 10  # Recommendations per user request
DEFAULT_SIMILAR_LIMIT = 5  # Similar products per product request
SIMILAR_USERS_K = 10  # Neighbourhood size for collaborative filtering

# Product-to-product similarity weights (sum to 1.0)
SIM_WEIGHT_CATEGORY = 0.4
SIM_WEIGHT_TAGS = 0.3
SIM_WEIGHT_PRICE = 0.2
SIM_WEIGHT_NAME = 0.1

# Content-based candidate scoring weights
CB_WEIGHT_CATEGORY = 0.4
CB_WEIGHT_TAGS = 0.3
CB_WEIGHT_PRICE = 0.2

# Price bands: low < 50 <= medium < 200 <= high
PRICE_LOW_MAX = 50
PRICE_MEDIUM_MAX = 200

# Preference strength per interaction type; view is the floor
PROFILE_WEIGHTS = {IT.PURCHASE: 4, IT.LIKE: 3, IT.CLICK: 2, IT.VIEW: 1}
PROFILE_TYPES = tuple(PROFILE_WEIGHTS)

# Collaborative multipliers on neighbour similarity
COLLAB_MULTIPLIERS = {IT.PURCHASE: 3, IT.LIKE: 2, IT.VIEW: 1}
COLLAB_TYPES = tuple(COLLAB_MULTIPLIERS)

# Hybrid weighting by interaction count: (collaborative, content-based)
HYBRID_COLD_MAX = 5  # count < 5 -> cold user
HYBRID_WARM_MIN = 20  # count > 20 -> established user
HYBRID_WEIGHTS_COLD = (0.2, 0.8)
HYBRID_WEIGHTS_WARM = (0.7, 0.3)
HYBRID_WEIGHTS_DEFAULT = (0.5, 0.5)
