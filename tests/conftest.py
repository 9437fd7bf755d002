import pytest

PODS_YAML = """\
apiVersion: v1
items:
- apiVersion: v1
  kind: Pod
  metadata:
    name: instance-manager-e-1
    namespace: longhorn-system
    ownerReferences:
    - apiVersion: longhorn.io/v1beta2
      blockOwnerDeletion: true
      controller: true
      kind: InstanceManager
      name: instance-manager-e-1
      uid: 5f0c
  spec:
    nodeName: worker-1
- apiVersion: v1
  kind: Pod
  metadata:
    name: longhorn-manager-x2k
    namespace: longhorn-system
    ownerReferences:
    - apiVersion: apps/v1
      blockOwnerDeletion: true
      controller: true
      kind: DaemonSet
      name: longhorn-manager
      uid: 7a1d
  spec:
    nodeName: worker-2
kind: List
"""

ENGINE_LOG = """\
2024-01-01T00:00:03Z ERROR engine replica failed
2024-01-01T00:00:01Z INFO engine started
healthz ERROR probe without timestamp
"""

MANAGER_LOG = """\
2024-01-01T00:00:02Z ERROR manager lost volume
2024-01-01T00:00:04Z ERROR manager healthz probe
"""

CSI_LOG = """\
2024-01-01T00:00:05Z ERROR csi attach timeout
"""

NODE_LOG = """\
2024-01-01T00:00:00Z ERROR kubelet eviction
"""


@pytest.fixture
def bundle(tmp_path):
    """A small support bundle with logs from two namespaces and one manifest."""
    sb = tmp_path / "sb"
    logs = sb / "logs"
    files = {
        logs / "longhorn-system" / "instance-manager-e-1" / "engine.log": ENGINE_LOG,
        logs / "longhorn-system" / "longhorn-manager-x2k" / "manager.log": MANAGER_LOG,
        logs / "kube-system" / "csi-attacher-1" / "csi.log": CSI_LOG,
        logs / "kubelet.log": NODE_LOG,
        logs / "longhorn-system" / "instance-manager-e-1" / "notes.txt": "2024-01-01T00:00:09Z ERROR txt\n",
        sb / "yamls" / "namespaced" / "longhorn-system" / "v1" / "pods.yaml": PODS_YAML,
    }
    for path, content in files.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return sb
