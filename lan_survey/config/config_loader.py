"""
Configuration loader for the LAN survey.
Handles loading and validation of the YAML configuration file with fallback to defaults.
"""

import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..utils.logger import get_logger

DEFAULT_CONFIG_FILE = "survey_config.yml"


def _netbios_default() -> bool:
    return platform.system().lower() == "windows"


@dataclass(frozen=True)
class LivenessConfig:
    """Configuration for the ping sweep."""
    timeout: float = 1.0
    concurrency: int = 80


@dataclass(frozen=True)
class NamingConfig:
    """Configuration for name resolution; concurrency is shared with enrichment."""
    concurrency: int = 30
    dns_enabled: bool = True
    dns_timeout: float = 2.0
    mdns_enabled: bool = True
    mdns_timeout: float = 2.0
    netbios_enabled: bool = field(default_factory=_netbios_default)
    netbios_timeout: float = 2.0


@dataclass(frozen=True)
class ProbeConfig:
    """Configuration for the per-host probes."""
    os_guess_enabled: bool = True
    ssh_enabled: bool = True
    ssh_timeout: float = 2.0
    smb_enabled: bool = True
    smb_timeout: float = 2.0
    cert_enabled: bool = True
    cert_timeout: float = 2.0
    http_title_enabled: bool = True
    http_header_enabled: bool = True
    http_timeout: float = 2.0
    favicon_enabled: bool = True


@dataclass(frozen=True)
class SNMPConfig:
    """Configuration for the SNMP sysName/sysDescr query."""
    enabled: bool = True
    community: str = "public"
    timeout: float = 2.0


@dataclass(frozen=True)
class DiscoveryConfig:
    """Configuration for the once-per-cycle neighbor table and broadcasters."""
    mac_enabled: bool = True
    mac_timeout: float = 2.0
    ssdp_enabled: bool = True
    ssdp_timeout: float = 2.0
    mdns_services_enabled: bool = True
    mdns_services_timeout: float = 2.0


@dataclass(frozen=True)
class InventoryConfig:
    """Configuration for the persisted inventory."""
    path: Optional[str] = None
    update_enabled: bool = True
    segment_overwrite: bool = True


@dataclass(frozen=True)
class WatchConfig:
    """Configuration for repeated cycles."""
    enabled: bool = False
    interval: float = 60.0


@dataclass(frozen=True)
class OutputConfig:
    """Configuration for the cycle row file sink."""
    path: Optional[str] = None


@dataclass(frozen=True)
class SurveyConfig:
    """Complete, immutable survey configuration."""
    segments_path: Optional[str] = None
    liveness: LivenessConfig = field(default_factory=LivenessConfig)
    naming: NamingConfig = field(default_factory=NamingConfig)
    probes: ProbeConfig = field(default_factory=ProbeConfig)
    snmp: SNMPConfig = field(default_factory=SNMPConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


class ConfigLoader:
    """
    Loads and validates the YAML configuration file for the survey.
    Provides fallback to default configuration when the file or a section is missing.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigLoader.

        Args:
            config_dir: Directory containing the default configuration file.
                       Defaults to the config directory relative to this file.
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent
        else:
            self.config_dir = Path(config_dir)

        self.logger = get_logger(__name__)

    def load(self, config_path: Optional[str] = None) -> SurveyConfig:
        """
        Load the survey configuration.

        Args:
            config_path: Path of the YAML file; defaults to survey_config.yml
                         in the config directory

        Returns:
            SurveyConfig with loaded or default values
        """
        path = Path(config_path) if config_path else self.config_dir / DEFAULT_CONFIG_FILE

        if not path.exists():
            self.logger.warning(f"Config file not found at {path}. Using default configuration.")
            return SurveyConfig()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing config file {path}: {e}")
            self.logger.warning("Using default configuration.")
            return SurveyConfig()
        except OSError as e:
            self.logger.error(f"Cannot read config file {path}: {e}")
            self.logger.warning("Using default configuration.")
            return SurveyConfig()

        if not isinstance(config_data, dict):
            self.logger.warning(f"Invalid config structure in {path}. Using default configuration.")
            return SurveyConfig()

        self.logger.debug(f"Loaded configuration from {path}")
        return self.from_dict(config_data)

    def from_dict(self, config_data: Dict[str, Any]) -> SurveyConfig:
        """Build a SurveyConfig from already parsed YAML data."""
        segments_path = config_data.get('segments_file')
        return SurveyConfig(
            segments_path=str(segments_path) if segments_path else None,
            liveness=self._liveness(self._section(config_data, 'liveness')),
            naming=self._naming(self._section(config_data, 'naming')),
            probes=self._probes(self._section(config_data, 'probes')),
            snmp=self._snmp(self._section(config_data, 'snmp')),
            discovery=self._discovery(self._section(config_data, 'discovery')),
            inventory=self._inventory(self._section(config_data, 'inventory')),
            watch=self._watch(self._section(config_data, 'watch')),
            output=self._output(self._section(config_data, 'output')),
        )

    def _section(self, config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = config_data.get(name)
        if section is None:
            self.logger.debug(f"No '{name}' section in config. Using defaults.")
            return {}
        if not isinstance(section, dict):
            self.logger.warning(f"Invalid '{name}' section in config. Using defaults.")
            return {}
        return section

    def _liveness(self, data: Dict[str, Any]) -> LivenessConfig:
        defaults = LivenessConfig()
        return LivenessConfig(
            timeout=self._validate_positive_number(data.get('timeout', defaults.timeout), 'liveness.timeout', defaults.timeout),
            concurrency=self._validate_positive_int(data.get('concurrency', defaults.concurrency), 'liveness.concurrency', defaults.concurrency),
        )

    def _naming(self, data: Dict[str, Any]) -> NamingConfig:
        defaults = NamingConfig()
        return NamingConfig(
            concurrency=self._validate_positive_int(data.get('concurrency', defaults.concurrency), 'naming.concurrency', defaults.concurrency),
            dns_enabled=self._validate_bool(data.get('dns_enabled', defaults.dns_enabled), 'naming.dns_enabled', defaults.dns_enabled),
            dns_timeout=self._validate_positive_number(data.get('dns_timeout', defaults.dns_timeout), 'naming.dns_timeout', defaults.dns_timeout),
            mdns_enabled=self._validate_bool(data.get('mdns_enabled', defaults.mdns_enabled), 'naming.mdns_enabled', defaults.mdns_enabled),
            mdns_timeout=self._validate_positive_number(data.get('mdns_timeout', defaults.mdns_timeout), 'naming.mdns_timeout', defaults.mdns_timeout),
            netbios_enabled=self._validate_bool(data.get('netbios_enabled', defaults.netbios_enabled), 'naming.netbios_enabled', defaults.netbios_enabled),
            netbios_timeout=self._validate_positive_number(data.get('netbios_timeout', defaults.netbios_timeout), 'naming.netbios_timeout', defaults.netbios_timeout),
        )

    def _probes(self, data: Dict[str, Any]) -> ProbeConfig:
        defaults = ProbeConfig()
        return ProbeConfig(
            os_guess_enabled=self._validate_bool(data.get('os_guess_enabled', defaults.os_guess_enabled), 'probes.os_guess_enabled', defaults.os_guess_enabled),
            ssh_enabled=self._validate_bool(data.get('ssh_enabled', defaults.ssh_enabled), 'probes.ssh_enabled', defaults.ssh_enabled),
            ssh_timeout=self._validate_positive_number(data.get('ssh_timeout', defaults.ssh_timeout), 'probes.ssh_timeout', defaults.ssh_timeout),
            smb_enabled=self._validate_bool(data.get('smb_enabled', defaults.smb_enabled), 'probes.smb_enabled', defaults.smb_enabled),
            smb_timeout=self._validate_positive_number(data.get('smb_timeout', defaults.smb_timeout), 'probes.smb_timeout', defaults.smb_timeout),
            cert_enabled=self._validate_bool(data.get('cert_enabled', defaults.cert_enabled), 'probes.cert_enabled', defaults.cert_enabled),
            cert_timeout=self._validate_positive_number(data.get('cert_timeout', defaults.cert_timeout), 'probes.cert_timeout', defaults.cert_timeout),
            http_title_enabled=self._validate_bool(data.get('http_title_enabled', defaults.http_title_enabled), 'probes.http_title_enabled', defaults.http_title_enabled),
            http_header_enabled=self._validate_bool(data.get('http_header_enabled', defaults.http_header_enabled), 'probes.http_header_enabled', defaults.http_header_enabled),
            http_timeout=self._validate_positive_number(data.get('http_timeout', defaults.http_timeout), 'probes.http_timeout', defaults.http_timeout),
            favicon_enabled=self._validate_bool(data.get('favicon_enabled', defaults.favicon_enabled), 'probes.favicon_enabled', defaults.favicon_enabled),
        )

    def _snmp(self, data: Dict[str, Any]) -> SNMPConfig:
        defaults = SNMPConfig()
        community = data.get('community', defaults.community)
        if not isinstance(community, str) or not community:
            self.logger.warning(f"Invalid snmp.community: {community}. Using default: {defaults.community}")
            community = defaults.community
        return SNMPConfig(
            enabled=self._validate_bool(data.get('enabled', defaults.enabled), 'snmp.enabled', defaults.enabled),
            community=community,
            timeout=self._validate_positive_number(data.get('timeout', defaults.timeout), 'snmp.timeout', defaults.timeout),
        )

    def _discovery(self, data: Dict[str, Any]) -> DiscoveryConfig:
        defaults = DiscoveryConfig()
        return DiscoveryConfig(
            mac_enabled=self._validate_bool(data.get('mac_enabled', defaults.mac_enabled), 'discovery.mac_enabled', defaults.mac_enabled),
            mac_timeout=self._validate_positive_number(data.get('mac_timeout', defaults.mac_timeout), 'discovery.mac_timeout', defaults.mac_timeout),
            ssdp_enabled=self._validate_bool(data.get('ssdp_enabled', defaults.ssdp_enabled), 'discovery.ssdp_enabled', defaults.ssdp_enabled),
            ssdp_timeout=self._validate_positive_number(data.get('ssdp_timeout', defaults.ssdp_timeout), 'discovery.ssdp_timeout', defaults.ssdp_timeout),
            mdns_services_enabled=self._validate_bool(data.get('mdns_services_enabled', defaults.mdns_services_enabled), 'discovery.mdns_services_enabled', defaults.mdns_services_enabled),
            mdns_services_timeout=self._validate_positive_number(data.get('mdns_services_timeout', defaults.mdns_services_timeout), 'discovery.mdns_services_timeout', defaults.mdns_services_timeout),
        )

    def _inventory(self, data: Dict[str, Any]) -> InventoryConfig:
        defaults = InventoryConfig()
        path = data.get('path')
        return InventoryConfig(
            path=str(path) if path else None,
            update_enabled=self._validate_bool(data.get('update_enabled', defaults.update_enabled), 'inventory.update_enabled', defaults.update_enabled),
            segment_overwrite=self._validate_bool(data.get('segment_overwrite', defaults.segment_overwrite), 'inventory.segment_overwrite', defaults.segment_overwrite),
        )

    def _watch(self, data: Dict[str, Any]) -> WatchConfig:
        defaults = WatchConfig()
        return WatchConfig(
            enabled=self._validate_bool(data.get('enabled', defaults.enabled), 'watch.enabled', defaults.enabled),
            interval=self._validate_positive_number(data.get('interval', defaults.interval), 'watch.interval', defaults.interval),
        )

    def _output(self, data: Dict[str, Any]) -> OutputConfig:
        path = data.get('path')
        return OutputConfig(path=str(path) if path else None)

    def _validate_positive_int(self, value: Any, field_name: str, default: int) -> int:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated integer value or default
        """
        if isinstance(value, bool):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}")
            return default
        try:
            int_value = int(value)
            if int_value <= 0:
                self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
                return default
            return int_value
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}")
            return default

    def _validate_positive_number(self, value: Any, field_name: str, default: float) -> float:
        """
        Validate that a value is a positive number of seconds.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated float value or default
        """
        if isinstance(value, bool):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}")
            return default
        try:
            number = float(value)
            if not number > 0:
                self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
                return default
            return number
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}")
            return default

    def _validate_bool(self, value: Any, field_name: str, default: bool) -> bool:
        """
        Validate that a value is a YAML boolean.

        Quoted strings such as "false" are rejected rather than coerced.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated boolean value or default
        """
        if isinstance(value, bool):
            return value
        self.logger.warning(f"Invalid {field_name}: {value!r}. Must be true or false. Using default: {default}")
        return default
