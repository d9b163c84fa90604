"""
Survey Orchestrator for the LAN survey.

This module provides the SurveyOrchestrator class that manages one
survey cycle (side-tables, then per segment: sweep, seed, enrich, name,
emit; then reconciliation and the inventory rewrite) and the watch loop
that repeats cycles.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple

from .data_models import CycleResult, HostRecord, InventoryEntry, Segment, SSDPInfo
from .enrichment_pipeline import EnrichmentPipeline, HostProbes, NetworkHostProbes
from .inventory_reconciler import reconcile, render_inventory
from .naming_resolver import NamingResolver, finalize_name
from ..config.config_loader import SurveyConfig
from ..config.segment_loader import load_segments
from ..scanners.mdns_scanner import MdnsServiceBrowser
from ..scanners.name_lookup import NameLookups, SystemNameLookups
from ..scanners.neighbor_table import NeighborTableReader, SystemNeighborTable
from ..scanners.ping_scanner import LivenessChecker, LivenessProber, PingChecker
from ..scanners.ssdp_scanner import SSDPDiscoverer
from ..utils.csv_reporter import RowSink, read_inventory, write_text
from ..utils.error_handler import ConfigurationError
from ..utils.logger import Logger, get_logger
from ..utils.network_utils import enumerate_hosts, int_to_ip, ip_to_int


@dataclass
class SurveyCapabilities:
    """
    Everything the survey uses to touch the network.

    Attributes:
        liveness: Per-address reachability check
        neighbors: Neighbor cache listing
        host_probes: Per-host enrichment probes
        name_lookups: Per-host name sources
        ssdp: SSDP broadcaster
        mdns_services: mDNS service browser
    """
    liveness: LivenessChecker
    neighbors: NeighborTableReader
    host_probes: HostProbes
    name_lookups: NameLookups
    ssdp: SSDPDiscoverer
    mdns_services: MdnsServiceBrowser

    @classmethod
    def from_config(cls, config: SurveyConfig, logger: Optional[Logger] = None) -> "SurveyCapabilities":
        """Build the capabilities that talk to the real network."""
        return cls(
            liveness=PingChecker(config.liveness.timeout, logger),
            neighbors=SystemNeighborTable(config.discovery.mac_timeout, logger),
            host_probes=NetworkHostProbes(config, logger),
            name_lookups=SystemNameLookups(config.naming, logger),
            ssdp=SSDPDiscoverer(config.discovery.ssdp_timeout, logger),
            mdns_services=MdnsServiceBrowser(config.discovery.mdns_services_timeout, logger),
        )


class SurveyOrchestrator:
    """
    Orchestrates survey cycles.

    Side-tables are gathered once per cycle before any segment is
    processed and are read-only afterwards. Segments are processed in
    declaration order; the inventory is reconciled once per cycle.
    """

    def __init__(
        self,
        config: SurveyConfig,
        capabilities: SurveyCapabilities,
        sink: RowSink,
        logger: Optional[Logger] = None,
    ):
        """
        Initialize the survey orchestrator.

        Args:
            config: Immutable survey configuration
            capabilities: Network-facing collaborators
            sink: Destination for cycle rows
            logger: Logger instance (optional)
        """
        self.config = config
        self.capabilities = capabilities
        self.sink = sink
        self.logger = logger or get_logger(__name__)

        self.prober = LivenessProber(config.liveness, capabilities.liveness, self.logger)
        self.pipeline = EnrichmentPipeline(config, capabilities.host_probes, self.logger)

    async def run(self) -> None:
        """
        Run one cycle, or cycles forever in watch mode.

        Segment list and inventory are reloaded before every cycle. Any
        fatal error ends the loop.

        Raises:
            SurveyError: On any fatal condition
        """
        if not self.config.segments_path:
            raise ConfigurationError("No segment list given")

        while True:
            if self.config.watch.enabled:
                self.logger.info(f"--- survey start {_now_iso()} ---")

            segments = load_segments(self.config.segments_path)
            inventory = read_inventory(
                self.config.inventory.path,
                allow_missing=self.config.inventory.update_enabled,
            )
            await self.run_cycle(segments, inventory)

            if not self.config.watch.enabled:
                return

            self.logger.info(f"--- survey done  {_now_iso()} ---")
            await asyncio.sleep(self.config.watch.interval)

    async def run_cycle(
        self, segments: List[Segment], inventory: Mapping[str, InventoryEntry]
    ) -> CycleResult:
        """
        Execute one full survey cycle.

        Args:
            segments: Segments to survey, in order
            inventory: Persisted inventory snapshot keyed by IP

        Returns:
            CycleResult: Emitted records and the reconciled inventory

        Raises:
            ToolMissingError: If the liveness check cannot run
            InventoryFileError: If the inventory cannot be rewritten
        """
        self.logger.section("LAN SURVEY")
        result = CycleResult()

        self.sink.begin_cycle()
        try:
            self.logger.progress_start("Collecting neighbor table and discovery broadcasts")
            neighbor_map, ssdp_map, service_map = await self._collect_side_tables()
            self.logger.progress_end(
                f"Side-tables ready: {len(neighbor_map)} neighbors, "
                f"{len(ssdp_map)} SSDP responders, {len(service_map)} mDNS hosts"
            )

            resolver = NamingResolver(
                self.config.naming,
                self.config.probes,
                self.capabilities.name_lookups,
                service_map,
                self.logger,
            )

            for segment in segments:
                records = await self._survey_segment(
                    segment, inventory, neighbor_map, ssdp_map, resolver
                )
                for record in records:
                    self.sink.emit(record)
                    result.records[record.ip] = record
        finally:
            self.sink.end_cycle()

        result.inventory = reconcile(
            inventory, result.records.values(), self.config.inventory.segment_overwrite
        )
        if self.config.inventory.update_enabled and self.config.inventory.path:
            write_text(self.config.inventory.path, render_inventory(result.inventory))
            result.inventory_written = True
            self.logger.info(
                f"Inventory updated: {len(result.inventory)} entries",
                path=self.config.inventory.path,
            )

        self.logger.success(f"Survey cycle completed. {result.alive_count} hosts alive")
        return result

    async def _collect_side_tables(
        self,
    ) -> Tuple[Dict[str, str], Dict[str, SSDPInfo], Dict[str, List[str]]]:
        discovery = self.config.discovery

        async def nothing() -> dict:
            return {}

        return await asyncio.gather(
            self.capabilities.neighbors.read() if discovery.mac_enabled else nothing(),
            self.capabilities.ssdp.discover() if discovery.ssdp_enabled else nothing(),
            self.capabilities.mdns_services.browse() if discovery.mdns_services_enabled else nothing(),
        )

    async def _survey_segment(
        self,
        segment: Segment,
        inventory: Mapping[str, InventoryEntry],
        neighbor_map: Dict[str, str],
        ssdp_map: Dict[str, SSDPInfo],
        resolver: NamingResolver,
    ) -> List[HostRecord]:
        addresses = enumerate_hosts(segment.network_address, segment.prefix_length)

        self.logger.progress_start(f"Sweeping {segment.name} ({segment.cidr}), {len(addresses)} addresses")
        alive = await self.prober.sweep(int_to_ip(address) for address in addresses)
        self.logger.progress_end(f"{segment.name}: {len(alive)} hosts alive")

        records = [
            HostRecord.seeded(
                segment=segment.name,
                ip=ip,
                entry=inventory.get(ip),
                neighbor_mac=neighbor_map.get(ip, ""),
                ttl=alive[ip],
            )
            for ip in sorted(alive, key=ip_to_int)
        ]

        for record in records:
            info = ssdp_map.get(record.ip)
            if info is not None:
                if info.server:
                    record.ssdp_server = info.server
                if info.usn:
                    record.ssdp_usn = info.usn

        if not records:
            return records

        self.logger.progress_start(f"Enriching {len(records)} hosts in {segment.name}")
        await self.pipeline.enrich(records)
        await resolver.resolve_all(records)
        for record in records:
            finalize_name(record)
        self.logger.progress_end(f"{segment.name}: enrichment and naming done")

        return records


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
