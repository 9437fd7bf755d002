"""Pod manifest lookup inside a support bundle.

Bundles store ``kubectl get pods -o yaml`` output per namespace, in one of
several directory layouts depending on the bundle generator version. The
scanner below reads that output as text, line by line, rather than loading
it as YAML: pod lists in large clusters run to tens of megabytes and only
three fields of one item are needed.

Layout of one list item, as the scanner expects it::

    - apiVersion: v1
      kind: Pod
      metadata:
        name: instance-manager-abc
        ownerReferences:
        - apiVersion: longhorn.io/v1beta2
          controller: true
          kind: InstanceManager
          name: instance-manager-abc
      spec:
        nodeName: worker-1
"""

import os
import re
from enum import Enum
from typing import Iterable

from sb_log_analyzer.models import UNKNOWN

MANIFEST_LAYOUTS = (
    ("yamls", "namespaced", "{namespace}", "v1", "pods.yaml"),
    ("yamls", "{namespace}", "pods.yaml"),
    ("manifests", "{namespace}", "pods.yaml"),
    ("objects", "{namespace}", "pods.yaml"),
)

_POD_NAME = re.compile(r"^    name: (.*)$")
_OWNER_REF_START = re.compile(r"^    - apiVersion:")
_OWNER_CONTROLLER = re.compile(r"^      controller: true")
_OWNER_NAME = re.compile(r"^      name: (.*)$")
_OWNER_BLOCK_END = re.compile(r"^(    |  )[^ ]")
_NODE_NAME = re.compile(r"^    nodeName: (.*)$")
_NEXT_ITEM = re.compile(r"^- apiVersion: v1")


def manifest_candidates(bundle_path: str, namespace: str) -> list[str]:
    """Candidate pod manifest paths for *namespace*, highest priority first."""
    return [
        os.path.join(bundle_path, *(part.format(namespace=namespace) for part in layout))
        for layout in MANIFEST_LAYOUTS
    ]


def find_pod_manifest(bundle_path: str, namespace: str) -> str | None:
    """Return the first candidate manifest that exists, or None."""
    for location in manifest_candidates(bundle_path, namespace):
        if os.path.isfile(location):
            return location
    return None


def normalize_field(value: str) -> str:
    """Drop newlines, collapse internal whitespace, and trim."""
    return " ".join(value.replace("\n", "").split())


def _first_word(value: str) -> str:
    words = value.split()
    return words[0] if words else ""


class ScanState(Enum):
    SEEKING_POD = "seeking_pod"
    IN_POD = "in_pod"
    IN_OWNER_BLOCK = "in_owner_block"
    DONE = "done"


class ManifestScanner:
    """Finds one pod's controller owner and node in a pod list manifest.

    Feed lines with :meth:`feed` (or all at once with :meth:`scan`) and read
    :attr:`owner` / :attr:`node` once :attr:`found` is True. Fields missing
    from the pod's block stay ``"unknown"``.
    """

    def __init__(self, pod: str):
        self.pod = pod
        self.state = ScanState.SEEKING_POD
        self.found = False
        self.owner = UNKNOWN
        self.node = UNKNOWN
        self._owner_set = False
        self._in_owner_ref = False

    def feed(self, line: str) -> ScanState:
        line = line.rstrip("\r\n")
        if self.state is ScanState.SEEKING_POD:
            self._seek(line)
        elif self.state is ScanState.IN_OWNER_BLOCK:
            self._owner_block(line)
        elif self.state is ScanState.IN_POD:
            self._in_pod(line)
        return self.state

    def finish(self) -> ScanState:
        if self.state is not ScanState.SEEKING_POD:
            self.state = ScanState.DONE
        return self.state

    def scan(self, lines: Iterable[str]) -> bool:
        """Run the whole input (stopping early at DONE). Returns :attr:`found`."""
        for line in lines:
            if self.feed(line) is ScanState.DONE:
                break
        self.finish()
        return self.found

    def _seek(self, line: str) -> None:
        m = _POD_NAME.match(line)
        if m and _first_word(m.group(1)) == self.pod:
            self.found = True
            self.state = ScanState.IN_POD

    def _in_pod(self, line: str) -> None:
        if _NEXT_ITEM.match(line):
            self.state = ScanState.DONE
            return
        m = _POD_NAME.match(line)
        if m and _first_word(m.group(1)) != self.pod:
            self.state = ScanState.DONE
            return
        if _OWNER_REF_START.match(line):
            self._in_owner_ref = True
            return
        if self._in_owner_ref and _OWNER_CONTROLLER.match(line):
            self._in_owner_ref = False
            self.state = ScanState.IN_OWNER_BLOCK
            return
        m = _NODE_NAME.match(line)
        if m:
            self.node = normalize_field(m.group(1)) or UNKNOWN

    def _owner_block(self, line: str) -> None:
        m = _OWNER_NAME.match(line)
        if m:
            if not self._owner_set:
                self.owner = normalize_field(m.group(1)) or UNKNOWN
                self._owner_set = True
            self.state = ScanState.IN_POD
            return
        if _OWNER_BLOCK_END.match(line):
            self.state = ScanState.IN_POD
            self._in_pod(line)


def scan_manifest(path: str, pod: str) -> tuple[str, str] | None:
    """Return ``(owner, node)`` for *pod* from the manifest at *path*, or None.

    Raises OSError if the manifest cannot be read.
    """
    scanner = ManifestScanner(pod)
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        found = scanner.scan(f)
    if not found:
        return None
    return scanner.owner, scanner.node
