"""Caching (namespace, pod) -> owner/node resolution over ordered strategies."""

import logging
from typing import Protocol

from sb_log_analyzer.manifests import find_pod_manifest, normalize_field, scan_manifest
from sb_log_analyzer.models import UNKNOWN, LookupResult, PodIdentity

logger = logging.getLogger(__name__)

_NOT_FOUND = object()


class ResolutionStrategy(Protocol):
    name: str

    def lookup(self, namespace: str, pod: str) -> LookupResult:
        ...


class PrefetchedStrategy:
    """Answers from a map loaded once for a single namespace."""

    name = "prefetched"

    def __init__(self, namespace: str, identities: dict[str, PodIdentity]):
        self.namespace = namespace
        self._identities = dict(identities)

    def __len__(self) -> int:
        return len(self._identities)

    def lookup(self, namespace: str, pod: str) -> LookupResult:
        if namespace != self.namespace:
            return LookupResult.unavailable()
        identity = self._identities.get(pod)
        if identity is None:
            return LookupResult.unavailable()
        return LookupResult.found(identity)


class ManifestStrategy:
    """Scans the namespace's pod manifest inside the bundle."""

    name = "manifest"

    def __init__(self, bundle_path: str):
        self.bundle_path = bundle_path

    def lookup(self, namespace: str, pod: str) -> LookupResult:
        path = find_pod_manifest(self.bundle_path, namespace)
        if path is None:
            logger.debug("No pod manifest for namespace %s", namespace)
            return LookupResult.not_found()
        try:
            fields = scan_manifest(path, pod)
        except OSError as e:
            logger.warning("Failed to read pod manifest %s: %s", path, e)
            return LookupResult.unavailable()
        if fields is None:
            return LookupResult.not_found()
        owner, node = fields
        return LookupResult.found(PodIdentity(namespace=namespace, pod=pod, owner=owner, node=node))


def _normalized(identity: PodIdentity) -> PodIdentity:
    return PodIdentity(
        namespace=identity.namespace,
        pod=identity.pod,
        owner=normalize_field(identity.owner) or UNKNOWN,
        node=normalize_field(identity.node) or UNKNOWN,
    )


class IdentityResolver:
    """Resolves pods through *strategies* in order, memoizing conclusive answers.

    A FOUND or NOT_FOUND answer is cached for the life of the resolver.
    UNAVAILABLE answers fall through to the next strategy and are never
    cached, so a later call may still succeed.
    """

    def __init__(self, strategies: list[ResolutionStrategy]):
        self.strategies = list(strategies)
        self._cache: dict[tuple[str, str], object] = {}

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._cache

    def resolve(self, namespace: str, pod: str) -> PodIdentity | None:
        key = (namespace, pod)
        cached = self._cache.get(key)
        if cached is not None:
            return None if cached is _NOT_FOUND else cached

        for strategy in self.strategies:
            result = strategy.lookup(namespace, pod)
            if not result.conclusive:
                continue
            if result.identity is None:
                logger.debug("Pod %s/%s not found (%s)", namespace, pod, strategy.name)
                self._cache[key] = _NOT_FOUND
                return None
            identity = _normalized(result.identity)
            logger.debug("Resolved %s/%s -> %s (%s)", namespace, pod, identity.label, strategy.name)
            self._cache[key] = identity
            return identity

        logger.debug("No identity source could answer for %s/%s", namespace, pod)
        return None


def build_resolver(bundle_path: str, prefetched: dict[str, PodIdentity] | None = None,
                   prefetch_namespace: str = "") -> IdentityResolver:
    """Standard strategy chain: prefetched identities (if any), then manifests."""
    strategies: list[ResolutionStrategy] = []
    if prefetched:
        strategies.append(PrefetchedStrategy(prefetch_namespace, prefetched))
    strategies.append(ManifestStrategy(bundle_path))
    return IdentityResolver(strategies)
