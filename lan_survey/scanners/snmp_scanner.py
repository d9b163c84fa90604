"""
SNMP probe for the LAN survey.

This module asks an SNMP agent for sysName and sysDescr with a single
SNMPv1 GET using the pysnmp asyncio API.
"""

from typing import Dict, Optional

from pysnmp.hlapi.v3arch.asyncio import (
    SnmpEngine,
    CommunityData,
    UdpTransportTarget,
    ContextData,
    ObjectType,
    ObjectIdentity,
    get_cmd,
)

from .base_scanner import BaseProbe
from ..config.config_loader import SNMPConfig
from ..core.data_models import SNMPInfo
from ..utils.logger import Logger

SNMP_PORT = 161
SYS_NAME_OID = "1.3.6.1.2.1.1.5.0"
SYS_DESCR_OID = "1.3.6.1.2.1.1.1.0"


class SNMPScanner(BaseProbe):
    """
    SNMP sysName/sysDescr probe.

    Uses SNMPv1 with the configured community, no retries and the
    configured timeout. Any failure yields an empty SNMPInfo.
    """

    probe_name = "snmp"

    def __init__(self, config: SNMPConfig, logger: Optional[Logger] = None, port: int = SNMP_PORT):
        super().__init__(logger)
        self.config = config
        self.port = port

    async def query(self, target: str) -> SNMPInfo:
        """
        Query sysName and sysDescr of one host.

        Args:
            target: IP address of the agent

        Returns:
            SNMPInfo with whatever values the agent returned
        """
        # Outer deadline leaves the transport its own timeout plus slack
        values = await self._guarded(
            target, self._get_system_values(target), self.config.timeout + 1.0, {}
        )
        return SNMPInfo(
            sys_name=values.get(SYS_NAME_OID, ""),
            sys_descr=values.get(SYS_DESCR_OID, ""),
        )

    async def _get_system_values(self, target: str) -> Dict[str, str]:
        """
        Perform the GET and collect printable values by OID.

        Args:
            target: IP address of the agent

        Returns:
            Dictionary of OID-value pairs for values the agent holds
        """
        transport_target = await UdpTransportTarget.create(
            (target, self.port), timeout=self.config.timeout, retries=0
        )
        auth_data = CommunityData(self.config.community, mpModel=0)  # SNMPv1
        snmp_engine = SnmpEngine()
        try:
            errorIndication, errorStatus, errorIndex, varBinds = await get_cmd(
                snmp_engine,
                auth_data,
                transport_target,
                ContextData(),
                ObjectType(ObjectIdentity(SYS_NAME_OID)),
                ObjectType(ObjectIdentity(SYS_DESCR_OID)),
                lookupMib=False,
            )
        finally:
            snmp_engine.close_dispatcher()

        if errorIndication:
            self._log_debug(f"SNMP error indication from {target}: {errorIndication}")
            return {}
        if errorStatus:
            self._log_debug(f"SNMP error status from {target}: {errorStatus.prettyPrint()}")
            return {}

        oid_data = {}
        for var_name, var_value in varBinds:
            value_str = var_value.prettyPrint().strip()
            if value_str and not value_str.startswith("No Such"):
                oid_data[var_name.prettyPrint()] = value_str
        return oid_data
