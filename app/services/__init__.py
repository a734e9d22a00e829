from app.services.catalog import ScenarioCatalog, load_catalog
from app.services.rewards import Activity, RewardLedger
from app.services.simulations import SimulationService

__all__ = ["Activity", "RewardLedger", "ScenarioCatalog", "SimulationService", "load_catalog"]
