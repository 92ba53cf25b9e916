"""
Campaign and dataset discovery.

Reconstruction output is laid out by convention as
``<reco root>/<campaign>/<detector>/<process type>/<process>``; a dataset is
one process directory, named ``detector/process_type/process``.
"""

from __future__ import annotations

import logging

from .models import (
    LAYOUT_FLAT,
    LAYOUT_HIERARCHY,
    Campaign,
    Dataset,
    DatasetDiscovery,
    DirectoryEntry,
)
from .sandbox import PathSandbox
from .walker import DirectoryWalker

logger = logging.getLogger(__name__)


def _subdirectories(entries: list[DirectoryEntry]) -> list[DirectoryEntry]:
    return [e for e in entries if e.is_dir]


def list_campaigns(walker: DirectoryWalker, reco_path: str) -> list[Campaign]:
    """Directories directly under the reco root, sorted by name."""
    campaigns = [
        Campaign(name=e.name, path=PathSandbox.join(reco_path, e.name), mtime=e.mtime)
        for e in _subdirectories(walker.list(reco_path))
    ]
    return sorted(campaigns, key=lambda c: c.name)


def _walk_hierarchy(walker: DirectoryWalker, campaign_path: str) -> list[Dataset] | None:
    """Datasets three levels below the campaign, or None if any level cannot be listed."""
    detectors = walker.try_list(campaign_path)
    if detectors is None:
        return None

    datasets: list[Dataset] = []
    for detector in _subdirectories(detectors):
        detector_path = PathSandbox.join(campaign_path, detector.name)
        process_types = walker.try_list(detector_path)
        if process_types is None:
            return None

        for process_type in _subdirectories(process_types):
            process_type_path = PathSandbox.join(detector_path, process_type.name)
            processes = walker.try_list(process_type_path)
            if processes is None:
                return None

            for process in _subdirectories(processes):
                datasets.append(
                    Dataset(
                        name=f"{detector.name}/{process_type.name}/{process.name}",
                        path=PathSandbox.join(process_type_path, process.name),
                    )
                )
    return datasets


def discover_datasets(walker: DirectoryWalker, campaign_path: str) -> DatasetDiscovery:
    """
    Find the datasets of a campaign.

    Walks detector, process type and process levels. When any level of that
    structure cannot be listed, falls back to the campaign's immediate
    subdirectories. A failure of that flat listing propagates.

    Raises:
        NotFound: If the campaign directory does not exist.
        RemoteListError: If the campaign directory cannot be listed.
    """
    datasets = _walk_hierarchy(walker, campaign_path)
    if datasets is not None:
        return DatasetDiscovery(campaign_path, datasets, LAYOUT_HIERARCHY)

    logger.warning(
        "Campaign %s does not follow the detector/process layout, listing it flat",
        campaign_path,
    )
    flat = [
        Dataset(name=e.name, path=PathSandbox.join(campaign_path, e.name))
        for e in _subdirectories(walker.list(campaign_path))
    ]
    return DatasetDiscovery(campaign_path, flat, LAYOUT_FLAT)
