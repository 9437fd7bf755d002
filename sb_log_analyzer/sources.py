"""One-shot identity sources: the bundle's JSON pod inventory and a live kubectl query.

Both produce the same thing, a ``{pod_name: PodIdentity}`` map for one
namespace, loaded once before the pipeline starts.
"""

import json
import logging
import os
import shutil
import subprocess
from typing import Any

from sb_log_analyzer.models import UNKNOWN, PodIdentity

logger = logging.getLogger(__name__)


class IdentitySourceUnavailable(Exception):
    """Raised when an identity source cannot be consulted at all."""


def _controller_owner(refs: Any) -> str:
    if not isinstance(refs, list):
        return UNKNOWN
    refs = [r for r in refs if isinstance(r, dict) and r.get("name")]
    for ref in refs:
        if ref.get("controller") is True:
            return str(ref["name"])
    if refs:
        return str(refs[0]["name"])
    return UNKNOWN


def parse_pod_item(item: dict, namespace: str) -> PodIdentity | None:
    """Build a PodIdentity from one pod object.

    Accepts Kubernetes-shaped items (``metadata.name``, ``spec.nodeName``)
    and flat ones (``name``, ``ownerReferences``, ``nodeName``).
    """
    metadata = item.get("metadata") if isinstance(item.get("metadata"), dict) else {}
    spec = item.get("spec") if isinstance(item.get("spec"), dict) else {}

    name = metadata.get("name") or item.get("name")
    if not name:
        return None
    refs = metadata.get("ownerReferences", item.get("ownerReferences"))
    node = spec.get("nodeName") or item.get("nodeName") or UNKNOWN
    return PodIdentity(
        namespace=namespace,
        pod=str(name),
        owner=_controller_owner(refs),
        node=str(node),
    )


def parse_pod_list(data: Any, namespace: str) -> dict[str, PodIdentity]:
    """Turn a JSON list of pods (or a ``{"items": [...]}`` List) into a map by pod name."""
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        return {}

    identities: dict[str, PodIdentity] = {}
    for item in data:
        if not isinstance(item, dict):
            continue
        identity = parse_pod_item(item, namespace)
        if identity is not None:
            identities[identity.pod] = identity
    return identities


def load_bundle_inventory(path: str, namespace: str) -> dict[str, PodIdentity]:
    """Read the bundle's JSON pod inventory. Missing or invalid files yield an empty map."""
    if not os.path.isfile(path):
        logger.debug("No pod inventory at %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        logger.warning("Failed to load pod inventory %s: %s", path, e)
        return {}
    identities = parse_pod_list(data, namespace)
    logger.info("Loaded %d pod identities from %s", len(identities), path)
    return identities


def query_cluster(namespace: str, kubectl: str = "kubectl",
                  timeout: float | None = 30) -> dict[str, PodIdentity]:
    """Run ``kubectl get pods -n <namespace> -o json`` and parse the result.

    Raises IdentitySourceUnavailable when kubectl is missing, fails, times
    out, or prints something that isn't JSON.
    """
    binary = shutil.which(kubectl)
    if binary is None:
        raise IdentitySourceUnavailable(f"{kubectl} not found on PATH")

    cmd = [binary, "get", "pods", "-n", namespace, "-o", "json"]
    try:
        completed = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise IdentitySourceUnavailable(f"{kubectl} timed out after {timeout}s") from e
    except OSError as e:
        raise IdentitySourceUnavailable(f"{kubectl} could not be run: {e}") from e

    if completed.returncode != 0:
        raise IdentitySourceUnavailable(
            f"{kubectl} exited with {completed.returncode}: {completed.stderr.strip()}"
        )
    try:
        data = json.loads(completed.stdout)
    except json.JSONDecodeError as e:
        raise IdentitySourceUnavailable(f"{kubectl} returned invalid JSON: {e}") from e
    return parse_pod_list(data, namespace)


def prefetch_identities(inventory_path: str, namespace: str, kubectl: str = "kubectl",
                        timeout: float | None = 30) -> dict[str, PodIdentity]:
    """Load identities from the bundle inventory, falling back to a live query."""
    identities = load_bundle_inventory(inventory_path, namespace)
    if identities:
        return identities

    try:
        identities = query_cluster(namespace, kubectl=kubectl, timeout=timeout)
    except IdentitySourceUnavailable as e:
        logger.warning("Live pod query unavailable: %s", e)
        return {}
    logger.info("Loaded %d pod identities from live cluster (namespace %s)",
                len(identities), namespace)
    return identities
