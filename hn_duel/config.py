"""Configuration handling for Hacker News Duel."""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

HN_API_BASE_URL = "https://hacker-news.firebaseio.com/v0"
HN_ITEM_URL = "https://news.ycombinator.com/item?id={id}"

FEEDS = ("beststories", "topstories", "newstories")
PAIRING_STRATEGIES = ("sequential", "random")
TIE_POLICIES = ("guesser", "opponent")


@dataclass
class SourceConfig:
    """Upstream Hacker News API configuration."""

    base_url: str = HN_API_BASE_URL
    feed: str = "beststories"
    request_timeout_sec: float = 10.0
    user_agent: str = "hn_duel/0.1"


@dataclass
class SupplyConfig:
    """Story buffer configuration: eligibility, refill policy and pairing."""

    batch_size: int = 50
    low_water_mark: int = 10
    stale_after_sec: int = 300  # 5 minutes
    max_age_days: int = 30
    min_score: int = 8
    require_url: bool = False
    shuffle: bool = True
    pairing: str = "sequential"
    max_concurrent_fetches: int = 20
    failure_threshold: int = 3


@dataclass
class RoundConfig:
    """Duel round configuration: countdown and scoring variant."""

    countdown_start: int = 5
    tick_interval_sec: float = 1.0
    incorrect_penalty: int = 1
    score_floor: Optional[int] = None
    tie_policy: str = "guesser"


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


def _apply_section(target: Any, values: Dict[str, Any]) -> None:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key in known:
            setattr(target, key, value)


@dataclass
class Config:
    """Application configuration combining YAML config and environment variables."""

    source: SourceConfig = field(default_factory=SourceConfig)
    supply: SupplyConfig = field(default_factory=SupplyConfig)
    round: RoundConfig = field(default_factory=RoundConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    log_level: str = "INFO"

    @classmethod
    def from_files(cls, config_path: str, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from a YAML file and environment variables.

        Environment variables win over the YAML file, which wins over the
        dataclass defaults. A missing YAML file is not an error.

        Args:
            config_path: Path to YAML configuration file
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()

        if os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file)

            if yaml_config:
                if "log_level" in yaml_config:
                    config.log_level = str(yaml_config["log_level"])

                sections = {
                    "source": config.source,
                    "supply": config.supply,
                    "round": config.round,
                    "monitoring": config.monitoring,
                }
                for name, section in sections.items():
                    if isinstance(yaml_config.get(name), dict):
                        _apply_section(section, yaml_config[name])

        config.source.base_url = os.getenv("HN_DUEL_BASE_URL", config.source.base_url)
        config.source.feed = os.getenv("HN_DUEL_FEED", config.source.feed)
        config.log_level = os.getenv("HN_DUEL_LOG_LEVEL", config.log_level)

        min_score = os.getenv("HN_DUEL_MIN_SCORE")
        if min_score:
            config.supply.min_score = int(min_score)
        max_age_days = os.getenv("HN_DUEL_MAX_AGE_DAYS")
        if max_age_days:
            config.supply.max_age_days = int(max_age_days)

        return config

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.source.base_url:
            errors.append("source.base_url must not be empty")
        if self.source.feed not in FEEDS:
            errors.append(f"source.feed must be one of {', '.join(FEEDS)}")
        if self.source.request_timeout_sec <= 0:
            errors.append("source.request_timeout_sec must be greater than 0")

        supply = self.supply
        if supply.batch_size <= 0:
            errors.append("supply.batch_size must be greater than 0")
        if supply.low_water_mark < 0:
            errors.append("supply.low_water_mark must not be negative")
        if supply.stale_after_sec <= 0:
            errors.append("supply.stale_after_sec must be greater than 0")
        if supply.max_age_days <= 0:
            errors.append("supply.max_age_days must be greater than 0")
        if supply.min_score < 0:
            errors.append("supply.min_score must not be negative")
        if supply.pairing not in PAIRING_STRATEGIES:
            errors.append(f"supply.pairing must be one of {', '.join(PAIRING_STRATEGIES)}")
        if supply.max_concurrent_fetches <= 0:
            errors.append("supply.max_concurrent_fetches must be greater than 0")
        if supply.failure_threshold <= 0:
            errors.append("supply.failure_threshold must be greater than 0")

        rnd = self.round
        if rnd.countdown_start <= 0:
            errors.append("round.countdown_start must be greater than 0")
        if rnd.tick_interval_sec <= 0:
            errors.append("round.tick_interval_sec must be greater than 0")
        if rnd.incorrect_penalty < 0:
            errors.append("round.incorrect_penalty must not be negative")
        if rnd.tie_policy not in TIE_POLICIES:
            errors.append(f"round.tie_policy must be one of {', '.join(TIE_POLICIES)}")

        if self.monitoring.enable_prometheus and self.monitoring.prometheus_port <= 0:
            errors.append("monitoring.prometheus_port must be a positive integer")

        return errors
