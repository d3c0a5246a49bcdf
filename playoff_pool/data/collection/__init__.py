"""Stats providers: ESPN box scores, Sleeper weekly stats and CSV uploads."""

from .csv_collector import StatsCSVParser
from .espn_collector import ESPNStatsCollector
from .provider_client import ProviderClient
from .sleeper_collector import PlayerDirectoryCache, SleeperStatsCollector

__all__ = ["ESPNStatsCollector", "PlayerDirectoryCache", "ProviderClient", "SleeperStatsCollector", "StatsCSVParser"]
