"""Price oracle implementations."""
from ..config import PriceOracleConfig
from ..interfaces.price_oracle import PriceOracle
from .pyth import PythOracle
from .static import StaticPriceOracle


def build_oracle(config: PriceOracleConfig) -> PriceOracle:
    if config.provider == "pyth":
        return PythOracle(config.pyth)
    return StaticPriceOracle(config.static_prices)


__all__ = ["PythOracle", "StaticPriceOracle", "build_oracle"]
