import pytest

from smartreco.core.config import Settings

from fakes import Clock, make_product


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def settings():
    return Settings(recommendation_timeout_s=5.0, trending_window_days=7, similar_users_k=10)


@pytest.fixture
def catalog():
    return [
        make_product("p1", "Red Running Shoe", "shoes", 40.0, ["running", "red"]),
        make_product("p2", "Blue Running Shoe", "shoes", 45.0, ["running", "blue"]),
        make_product("p3", "Trail Running Shoe", "shoes", 120.0, ["running", "trail"]),
        make_product("p4", "Leather Wallet", "accessories", 30.0, ["leather"]),
        make_product("p5", "Smart Watch", "electronics", 250.0, ["gadget", "fitness"]),
        make_product("p6", "Fitness Tracker", "electronics", 90.0, ["gadget", "fitness"]),
        make_product("p7", "Running Socks", "apparel", 10.0, ["running"]),
    ]
