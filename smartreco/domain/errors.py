class RecommendationError(Exception):
    """Base class for recommendation-core errors."""


class ProductNotFound(RecommendationError):
    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class UpstreamFailure(RecommendationError):
    """A storage call behind a recommender failed; the result is not trustworthy."""
