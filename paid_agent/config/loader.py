"""
Configuration management and loading.

Handles agent identity, budget, transport and the paid service catalog.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict

import yaml


def _to_decimal(value, path: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValueError(f"'{path}' must be a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"'{path}' must be a number")
    if not amount.is_finite():
        raise ValueError(f"'{path}' must be a finite number")
    return amount


@dataclass(frozen=True)
class ServiceConfig:
    """One paid tier: where it lives and what it costs per call."""
    endpoint: str
    cost: Decimal

    def __post_init__(self):
        """Validate endpoint and cost."""
        if not self.endpoint or not self.endpoint.startswith("/"):
            raise ValueError("endpoint must be a path starting with '/'")
        if not math.isfinite(self.cost) or self.cost <= 0:
            raise ValueError("cost must be > 0")


DEFAULT_SERVICES: Dict[str, ServiceConfig] = {
    "market_signal": ServiceConfig("/api/v1/data/market-intelligence", Decimal("0.005")),
    "sentiment": ServiceConfig("/api/v1/models/sentiment-analysis", Decimal("0.02")),
    "prediction": ServiceConfig("/api/v1/models/price-prediction", Decimal("0.10")),
    "research": ServiceConfig("/api/v1/data/research-papers", Decimal("0.01")),
}


@dataclass(frozen=True)
class ServiceCatalog:
    """Paid tiers the agent can call, cheapest first."""
    market_signal: ServiceConfig = DEFAULT_SERVICES["market_signal"]
    sentiment: ServiceConfig = DEFAULT_SERVICES["sentiment"]
    prediction: ServiceConfig = DEFAULT_SERVICES["prediction"]
    research: ServiceConfig = DEFAULT_SERVICES["research"]

    def as_dict(self) -> Dict[str, ServiceConfig]:
        return {name: getattr(self, name) for name in DEFAULT_SERVICES}

    @property
    def total_cost(self) -> Decimal:
        """Cost of calling every tier once."""
        return sum((service.cost for service in self.as_dict().values()), Decimal("0"))


@dataclass(frozen=True)
class TransportConfig:
    """Where the paid services are reached."""
    base_url: str = "http://localhost:3000"
    timeout_seconds: float = 30.0

    def __post_init__(self):
        """Validate transport values."""
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if not math.isfinite(self.timeout_seconds) or self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be a finite number > 0")


@dataclass(frozen=True)
class AgentConfig:
    """Complete agent configuration."""
    name: str
    budget: Decimal
    services: ServiceCatalog = field(default_factory=ServiceCatalog)
    transport: TransportConfig = field(default_factory=TransportConfig)

    def __post_init__(self):
        """Validate name and budget."""
        if not self.name or not self.name.strip():
            raise ValueError("agent name is required and cannot be empty")
        if not math.isfinite(self.budget) or self.budget <= 0:
            raise ValueError("budget must be a finite number > 0")


def load_agent_config(path: str) -> AgentConfig:
    """Load and validate agent configuration from YAML file.

    Strict validation ensures no silent misconfigurations that could lead
    to an agent spending against the wrong budget or endpoints.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AgentConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Agent config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'agent', 'transport', 'services'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    # Agent section
    if 'agent' not in raw_config:
        raise ValueError("Missing required 'agent' section")

    agent_data = raw_config['agent']
    if not isinstance(agent_data, dict):
        raise ValueError("'agent' must be a dictionary")

    unknown_agent_keys = set(agent_data.keys()) - {'name', 'budget'}
    if unknown_agent_keys:
        raise ValueError(f"Unknown agent keys: {unknown_agent_keys}")
    if 'name' not in agent_data:
        raise ValueError("Missing required 'name' in agent")
    if 'budget' not in agent_data:
        raise ValueError("Missing required 'budget' in agent")

    budget = _to_decimal(agent_data['budget'], "agent.budget")
    if budget <= 0:
        raise ValueError("'agent.budget' must be > 0")

    # Transport section
    transport_data = raw_config.get('transport') or {}
    if not isinstance(transport_data, dict):
        raise ValueError("'transport' must be a dictionary")

    unknown_transport_keys = set(transport_data.keys()) - {'base_url', 'timeout_seconds'}
    if unknown_transport_keys:
        raise ValueError(f"Unknown transport keys: {unknown_transport_keys}")

    timeout = transport_data.get('timeout_seconds', TransportConfig.timeout_seconds)
    if (isinstance(timeout, bool) or not isinstance(timeout, (int, float))
            or not math.isfinite(timeout) or timeout <= 0):
        raise ValueError("'transport.timeout_seconds' must be a finite number > 0")

    transport = TransportConfig(
        base_url=str(transport_data.get('base_url', TransportConfig.base_url)),
        timeout_seconds=float(timeout)
    )

    # Services section
    services_data = raw_config.get('services') or {}
    if not isinstance(services_data, dict):
        raise ValueError("'services' must be a dictionary")

    unknown_services = set(services_data.keys()) - set(DEFAULT_SERVICES)
    if unknown_services:
        raise ValueError(f"Unknown services: {unknown_services}")

    services = {}
    for service_name, service_data in services_data.items():
        if not isinstance(service_data, dict):
            raise ValueError(f"Service '{service_name}' must be a dictionary")
        services[service_name] = _parse_service_config(
            service_data, DEFAULT_SERVICES[service_name], f"services.{service_name}"
        )

    return AgentConfig(
        name=str(agent_data['name']),
        budget=budget,
        services=ServiceCatalog(**services),
        transport=transport
    )


def _parse_service_config(data: Dict, default: ServiceConfig, path: str) -> ServiceConfig:
    """Parse and validate one service entry, filling gaps from the default.

    Args:
        data: Service configuration data
        default: Built-in configuration for the same tier
        path: Path for error messages

    Returns:
        Validated ServiceConfig

    Raises:
        ValueError: If configuration is invalid
    """
    allowed_keys = {'endpoint', 'cost'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    endpoint = data.get('endpoint', default.endpoint)
    if not isinstance(endpoint, str) or not endpoint.startswith("/"):
        raise ValueError(f"'endpoint' in {path} must be a path starting with '/'")

    cost = _to_decimal(data['cost'], f"{path}.cost") if 'cost' in data else default.cost
    if cost <= 0:
        raise ValueError(f"'cost' in {path} must be > 0")

    return ServiceConfig(endpoint=endpoint, cost=cost)
