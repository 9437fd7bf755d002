"""Tests for the caching identity resolver."""

import os
import tempfile
import unittest
from unittest.mock import patch

from sb_log_analyzer.models import LookupResult, PodIdentity
from sb_log_analyzer.resolver import (
    IdentityResolver,
    ManifestStrategy,
    PrefetchedStrategy,
    build_resolver,
)

PODS_YAML = """\
- apiVersion: v1
  kind: Pod
  metadata:
    name: pod-abc
    ownerReferences:
    - apiVersion: apps/v1
      controller: true
      kind: ReplicaSet
      name: deploy-x
  spec:
    nodeName: node-1
"""


class _FakeStrategy:
    def __init__(self, name, result):
        self.name = name
        self.result = result
        self.calls = []

    def lookup(self, namespace, pod):
        self.calls.append((namespace, pod))
        return self.result


class TestIdentityResolverCache(unittest.TestCase):
    def test_hit_cached_without_second_lookup(self):
        identity = PodIdentity("ns", "p", "o", "n")
        strategy = _FakeStrategy("fake", LookupResult.found(identity))
        resolver = IdentityResolver([strategy])

        first = resolver.resolve("ns", "p")
        second = resolver.resolve("ns", "p")

        self.assertEqual(first, identity)
        self.assertIs(first, second)
        self.assertEqual(len(strategy.calls), 1)

    def test_not_found_cached(self):
        strategy = _FakeStrategy("fake", LookupResult.not_found())
        resolver = IdentityResolver([strategy])

        self.assertIsNone(resolver.resolve("ns", "p"))
        self.assertIsNone(resolver.resolve("ns", "p"))
        self.assertEqual(len(strategy.calls), 1)
        self.assertIn(("ns", "p"), resolver)

    def test_unavailable_not_cached(self):
        strategy = _FakeStrategy("fake", LookupResult.unavailable())
        resolver = IdentityResolver([strategy])

        self.assertIsNone(resolver.resolve("ns", "p"))
        self.assertNotIn(("ns", "p"), resolver)
        resolver.resolve("ns", "p")
        self.assertEqual(len(strategy.calls), 2)

    def test_cache_key_includes_namespace(self):
        strategy = _FakeStrategy("fake", LookupResult.not_found())
        resolver = IdentityResolver([strategy])
        resolver.resolve("ns1", "p")
        resolver.resolve("ns2", "p")
        self.assertEqual(strategy.calls, [("ns1", "p"), ("ns2", "p")])


class TestIdentityResolverOrder(unittest.TestCase):
    def test_unavailable_falls_through(self):
        identity = PodIdentity("ns", "p", "o", "n")
        first = _FakeStrategy("first", LookupResult.unavailable())
        second = _FakeStrategy("second", LookupResult.found(identity))
        resolver = IdentityResolver([first, second])

        self.assertEqual(resolver.resolve("ns", "p"), identity)
        self.assertEqual(len(first.calls), 1)

    def test_first_conclusive_wins(self):
        first = _FakeStrategy("first", LookupResult.not_found())
        second = _FakeStrategy("second", LookupResult.found(PodIdentity("ns", "p")))
        resolver = IdentityResolver([first, second])

        self.assertIsNone(resolver.resolve("ns", "p"))
        self.assertEqual(second.calls, [])

    def test_identity_fields_normalized(self):
        raw = PodIdentity("ns", "p", "  deploy\n-x ", "node   1\n")
        resolver = IdentityResolver([_FakeStrategy("fake", LookupResult.found(raw))])
        identity = resolver.resolve("ns", "p")
        self.assertEqual((identity.owner, identity.node), ("deploy-x", "node 1"))


class TestPrefetchedStrategy(unittest.TestCase):
    def setUp(self):
        self.identity = PodIdentity("longhorn-system", "p1", "o", "n")
        self.strategy = PrefetchedStrategy("longhorn-system", {"p1": self.identity})

    def test_found(self):
        self.assertEqual(self.strategy.lookup("longhorn-system", "p1"), LookupResult.found(self.identity))

    def test_other_namespace_unavailable(self):
        self.assertFalse(self.strategy.lookup("kube-system", "p1").conclusive)

    def test_missing_pod_unavailable(self):
        self.assertFalse(self.strategy.lookup("longhorn-system", "p2").conclusive)


class TestManifestStrategy(unittest.TestCase):
    def setUp(self):
        self.sb = tempfile.mkdtemp()
        manifest_dir = os.path.join(self.sb, "yamls", "namespaced", "longhorn-system", "v1")
        os.makedirs(manifest_dir)
        with open(os.path.join(manifest_dir, "pods.yaml"), "w") as f:
            f.write(PODS_YAML)
        self.strategy = ManifestStrategy(self.sb)

    def test_found(self):
        result = self.strategy.lookup("longhorn-system", "pod-abc")
        self.assertEqual(result.identity, PodIdentity("longhorn-system", "pod-abc", "deploy-x", "node-1"))

    def test_pod_missing_is_not_found(self):
        result = self.strategy.lookup("longhorn-system", "pod-zzz")
        self.assertTrue(result.conclusive)
        self.assertIsNone(result.identity)

    def test_no_manifest_is_not_found(self):
        result = self.strategy.lookup("kube-system", "pod-abc")
        self.assertTrue(result.conclusive)
        self.assertIsNone(result.identity)

    def test_unreadable_manifest_is_unavailable(self):
        with patch("sb_log_analyzer.resolver.scan_manifest", side_effect=PermissionError("denied")):
            result = self.strategy.lookup("longhorn-system", "pod-abc")
        self.assertFalse(result.conclusive)

    def test_second_resolve_does_no_io(self):
        resolver = build_resolver(self.sb)
        first = resolver.resolve("longhorn-system", "pod-abc")
        with patch("sb_log_analyzer.resolver.find_pod_manifest") as find, \
                patch("sb_log_analyzer.resolver.scan_manifest") as scan:
            second = resolver.resolve("longhorn-system", "pod-abc")
        find.assert_not_called()
        scan.assert_not_called()
        self.assertEqual(first, second)


class TestBuildResolver(unittest.TestCase):
    def test_manifest_only_without_prefetch(self):
        resolver = build_resolver("/sb")
        self.assertEqual([s.name for s in resolver.strategies], ["manifest"])

    def test_prefetched_first(self):
        resolver = build_resolver("/sb", {"p": PodIdentity("ns", "p")}, "ns")
        self.assertEqual([s.name for s in resolver.strategies], ["prefetched", "manifest"])


if __name__ == "__main__":
    unittest.main()
