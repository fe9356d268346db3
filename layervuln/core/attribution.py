"""Layer attribution — assigns each scanner match to the image layers that introduced it."""

from __future__ import annotations

from layervuln.core.logging import get_logger
from layervuln.schemas.layers import FixRecord, LayerVulnerability, VulnerabilityRecord
from layervuln.schemas.report import ImageTarget, Match, ScanReport

logger = get_logger(__name__)


def attribute(report: ScanReport) -> list[LayerVulnerability]:
    """Build the ordered layer chain with the vulnerabilities found in each layer.

    Every layer of the image target yields exactly one entry, in scan order,
    even when nothing was found in it. A match observed in several layers is
    reported once per layer; matches with no location in any layer are dropped.

    Returns an empty list for reports without a source (directory scans).

    Raises:
        MalformedReportError: the report's image target is not well-formed.
    """
    target = report.image_target()
    if target is None:
        return []

    layers: list[LayerVulnerability] = []
    parent_layer_hash = ""

    for layer in target.layers:
        entry = LayerVulnerability(
            layer_hash=layer.digest,
            parent_layer_hash=parent_layer_hash,
        )
        parent_layer_hash = layer.digest

        for match in report.matches:
            # One record per (match, layer), however many locations share the layer
            if any(
                loc.filesystem_layer_id == layer.digest
                for loc in match.artifact.locations
            ):
                entry.vulnerabilities.append(_to_record(match, target))

        layers.append(entry)

    logger.debug(
        "Attributed matches to layers",
        image=target.user_input,
        layers=len(layers),
        matches=len(report.matches),
    )
    return layers


def _to_record(match: Match, target: ImageTarget) -> VulnerabilityRecord:
    vuln = match.vulnerability
    version = match.fix_versions[0] if match.fix_versions else ""
    # Description comes from the first related (cross-referenced) vulnerability,
    # never from vuln.description
    descriptions = match.related_descriptions
    description = descriptions[0] if descriptions else ""

    return VulnerabilityRecord(
        name=vuln.id,
        image_hash=target.manifest_digest,
        image_tag=target.user_input,
        package_name=match.artifact.name,
        package_version=match.artifact.version,
        link=vuln.data_source,
        description=description,
        severity=vuln.severity,
        fixes=[
            FixRecord(
                name=match.fix_state,
                image_tag=target.user_input,
                version=version,
            )
        ],
    )
