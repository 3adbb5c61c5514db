"""Tests for manifest library."""

from pathlib import Path

import pytest

from helm_images.exceptions import ManifestDecodeError
from helm_images.manifest import (
    Container,
    PodSpec,
    WorkloadObject,
    parse_document,
    parse_documents,
    split_documents,
)

TESTDATA_DIR = Path("tests/testdata")

CERTIFICATE_LINE = "\t\tOCOIRRGVEGHEIGHEnwoircne20394809234nfh834retitneh83t5ljfKHD&$&$\n"

CLUSTER_ROLE = (
    "# Source: prometheus/charts/prometheus/templates/alertmanager/clusterrole.yaml\n"
    "apiVersion: rbac.authorization.k8s.io/v1\n"
    "kind: ClusterRole\n"
    "metadata:\n"
    " labels:\n"
    '   component: "alertmanager"\n'
    "   app: prometheus\n"
    " name: prometheus-standalone-alertmanager\n"
    "rules:\n"
    " []\n"
)
CLUSTER_ROLE_BINDING = (
    "# Source: prometheus/charts/kube-state-metrics/templates/clusterrolebinding.yaml\n"
    "apiVersion: rbac.authorization.k8s.io/v1\n"
    "kind: ClusterRoleBinding\n"
    "metadata:\n"
    " name: prometheus-standalone-kube-state-metrics\n"
    "roleRef:\n"
    " apiGroup: rbac.authorization.k8s.io\n"
    " kind: ClusterRole\n"
    " name: prometheus-standalone-kube-state-metrics\n"
    "subjects:\n"
    "- kind: ServiceAccount\n"
    "  name: prometheus-standalone-kube-state-metrics\n"
    "  namespace: test\n"
)
CONFIG_MAP = (
    "# Source: tracing/templates/jaeger/configmap.yaml\n"
    "apiVersion: v1\n"
    "kind: ConfigMap\n"
    "metadata:\n"
    " name: jaeger-ca-cert\n"
    "data:\n"
    "   CA_CERTIFICATE: |\n"
    "       -----BEGIN CERTIFICATE-----\n"
    + CERTIFICATE_LINE * 5
    + "       ---\n"
    + CERTIFICATE_LINE * 5
    + "       -----END CERTIFICATE-----\n"
)


def test_split_rendered_templates() -> None:
    """Test splitting rendered templates into the individual templates."""
    content = "\n---\n" + CLUSTER_ROLE + "---\n" + CLUSTER_ROLE_BINDING + "---\n" + CONFIG_MAP
    documents = split_documents(content)
    assert documents == [CLUSTER_ROLE, CLUSTER_ROLE_BINDING, CONFIG_MAP]
    assert documents[0].startswith("# Source: prometheus/charts/")


def test_split_keeps_certificate_body() -> None:
    """Test that the lines of a block scalar never split a document."""
    documents = split_documents("---\n" + CONFIG_MAP)
    assert len(documents) == 1
    assert "       ---\n" in documents[0]
    assert documents[0].count(CERTIFICATE_LINE) == 10
    assert documents[0].endswith("       -----END CERTIFICATE-----\n")


def test_split_indented_decoy() -> None:
    """Test a blob with one real separator and one indented separator."""
    content = (
        "kind: ConfigMap\n"
        "data:\n"
        "  script: |\n"
        "    echo start\n"
        "    ---\n"
        "    echo end\n"
        "---\n"
        "kind: Secret\n"
    )
    documents = split_documents(content)
    assert documents == [
        "kind: ConfigMap\n"
        "data:\n"
        "  script: |\n"
        "    echo start\n"
        "    ---\n"
        "    echo end\n",
        "kind: Secret\n",
    ]


def test_split_no_separator() -> None:
    """Test a single document without any separators."""
    content = "apiVersion: v1\nkind: ConfigMap\n"
    assert split_documents(content) == [content]


@pytest.mark.parametrize(
    "content",
    [
        "",
        "\n\n",
        "---\n",
        "---\n---\n   \n---\n",
    ],
)
def test_split_blank(content: str) -> None:
    """Test that blank documents are dropped."""
    assert split_documents(content) == []


def test_split_leading_and_trailing_separators() -> None:
    """Test separators before the first and after the last document."""
    content = "---\nkind: Pod\n---\n\n---\nkind: Job\n---\n"
    assert split_documents(content) == ["kind: Pod\n", "kind: Job\n"]


def test_split_keeps_source_comment() -> None:
    """Test that the helm source comment stays with its document."""
    content = "---\n# Source: chart/templates/pod.yaml\nkind: Pod\n"
    assert split_documents(content) == ["# Source: chart/templates/pod.yaml\nkind: Pod\n"]


def test_split_separator_trailing_whitespace() -> None:
    """Test a separator line with trailing whitespace and CRLF line endings."""
    content = "kind: Pod\r\n---  \r\nkind: Job\r\n"
    assert split_documents(content) == ["kind: Pod\r\n", "kind: Job\r\n"]


@pytest.mark.parametrize(
    "line_break",
    ["\u2028", "\u2029", "\x85", "\x0b", "\x0c", "\x1c", "\r"],
)
def test_split_unicode_line_breaks(line_break: str) -> None:
    """Test that only newlines end a line when looking for separators."""
    content = f'kind: Pod\nx: "a{line_break}---{line_break}b"\n'
    assert split_documents(content) == [content]


@pytest.mark.parametrize(
    "line",
    [
        "--- # comment\n",
        "--- !tag\n",
        "----\n",
        " ---\n",
        "\t---\n",
    ],
)
def test_split_not_a_separator(line: str) -> None:
    """Test lines that resemble a separator but are not one."""
    content = "kind: Pod\n" + line + "kind: Job\n"
    assert split_documents(content) == [content]


def test_split_rejoin() -> None:
    """Test that joining the documents again produces the same documents."""
    content = "\n---\n" + CLUSTER_ROLE + "---\n" + CLUSTER_ROLE_BINDING + "---\n" + CONFIG_MAP
    documents = split_documents(content)
    assert split_documents("---\n".join(documents)) == documents


def test_parse_deployment() -> None:
    """Test decoding a deployment into a workload object."""
    obj = parse_document(
        """
apiVersion: apps/v1
kind: Deployment
metadata:
  name: podinfo
  namespace: podinfo
  annotations:
    example.com/extra: value
spec:
  replicas: 2
  template:
    spec:
      initContainers:
        - name: init
          image: busybox:1.36
      containers:
        - name: podinfo
          image: ghcr.io/stefanprodan/podinfo:6.7.0
          ports:
            - containerPort: 9898
"""
    )
    assert obj == WorkloadObject(
        kind="Deployment",
        name="podinfo",
        namespace="podinfo",
        pod_specs=[
            PodSpec(
                init_containers=[Container(name="init", image="busybox:1.36")],
                containers=[
                    Container(
                        name="podinfo", image="ghcr.io/stefanprodan/podinfo:6.7.0"
                    )
                ],
            )
        ],
    )


def test_parse_absent_and_empty_collections() -> None:
    """Test that absent collections are distinct from empty collections."""
    obj = parse_document(
        """
kind: Pod
metadata:
  name: debug
spec:
  initContainers: []
  containers:
    - name: app
"""
    )
    assert obj
    assert len(obj.pod_specs) == 1
    pod_spec = obj.pod_specs[0]
    assert pod_spec.init_containers == []
    assert pod_spec.containers == [Container(name="app")]
    assert pod_spec.ephemeral_containers is None


def test_parse_cronjob() -> None:
    """Test decoding the pod spec nested in a cronjob job template."""
    obj = parse_document(
        """
kind: CronJob
metadata:
  name: cleanup
spec:
  jobTemplate:
    spec:
      template:
        spec:
          containers:
            - image: d:4
"""
    )
    assert obj
    assert obj.pod_specs == [PodSpec(containers=[Container(image="d:4")])]


@pytest.mark.parametrize(
    "content",
    [
        "kind: ConfigMap\nmetadata:\n  name: config\ndata:\n  spec: value\n",
        "kind: Deployment\nmetadata:\n  name: no-template\nspec:\n  replicas: 1\n",
        "kind: Job\nmetadata:\n  name: no-spec\n",
        "kind: CronJob\nmetadata:\n  name: partial\nspec:\n  jobTemplate: null\n",
    ],
)
def test_parse_no_pod_specs(content: str) -> None:
    """Test objects without a pod spec at the expected location."""
    obj = parse_document(content)
    assert obj
    assert obj.pod_specs == []


def test_parse_comment_only_document() -> None:
    """Test that a template rendered to only a comment is skipped."""
    assert parse_document("# Source: chart/templates/empty.yaml\n") is None


@pytest.mark.parametrize(
    ("content", "expected_error"),
    [
        ("kind: Pod\nmetadata: [invalid\n", "Unable to decode document 3"),
        ("- kind: Pod\n", "Expected a mapping, got type list"),
        ("metadata:\n  name: nameless\n", "missing kind"),
        ("kind: [Pod]\n", "missing kind"),
        ("kind: {a: b}\n", "missing kind"),
        (
            "kind: Pod\nspec:\n  containers:\n    - image:\n        repository: busybox\n",
            "Expected string for container image",
        ),
        ("kind: Pod\nspec:\n  containers:\n    - busybox\n", "Invalid pod spec"),
    ],
)
def test_parse_document_failure(content: str, expected_error: str) -> None:
    """Test documents that can't be decoded."""
    with pytest.raises(ManifestDecodeError, match=expected_error) as exc_info:
        parse_document(content, index=3)
    assert exc_info.value.index == 3


def test_parse_documents() -> None:
    """Test decoding all documents of a rendered chart."""
    objects = parse_documents((TESTDATA_DIR / "chart-manifest.yaml").read_text())
    assert [(obj.kind, obj.name) for obj in objects] == [
        ("ServiceAccount", "prometheus-server"),
        ("ConfigMap", "prometheus-ca-cert"),
        ("DaemonSet", "prometheus-node-exporter"),
        ("Deployment", "prometheus-server"),
        ("StatefulSet", "prometheus-kube-state-metrics"),
        ("CronJob", "prometheus-cleanup"),
    ]


def test_parse_documents_failure() -> None:
    """Test that a document that can't be decoded fails the manifest."""
    with pytest.raises(ManifestDecodeError, match="document 0") as exc_info:
        parse_documents((TESTDATA_DIR / "invalid-manifest.yaml").read_text())
    assert exc_info.value.index == 0


def test_parse_documents_continue_on_error() -> None:
    """Test skipping the documents that can't be decoded."""
    objects = parse_documents(
        (TESTDATA_DIR / "invalid-manifest.yaml").read_text(),
        continue_on_error=True,
    )
    assert [(obj.kind, obj.name) for obj in objects] == [("Pod", "broken-pod")]


def test_parse_documents_continue_on_invalid_kind() -> None:
    """Test skipping a document whose kind is not a string."""
    content = (
        "kind: [Pod]\n"
        "metadata:\n"
        "  name: listed\n"
        "---\n"
        "kind: {name: Pod}\n"
        "---\n"
        "kind: Pod\n"
        "metadata:\n"
        "  name: app\n"
        "spec:\n"
        "  containers:\n"
        "    - image: a:1\n"
    )
    with pytest.raises(ManifestDecodeError, match="document 0") as exc_info:
        parse_documents(content)
    assert exc_info.value.index == 0

    objects = parse_documents(content, continue_on_error=True)
    assert objects == [
        WorkloadObject(
            kind="Pod",
            name="app",
            pod_specs=[PodSpec(containers=[Container(image="a:1")])],
        )
    ]


def test_parse_scalar_metadata() -> None:
    """Test that a numeric name or namespace is read as a string."""
    obj = parse_document("kind: Pod\nmetadata:\n  name: 123\n  namespace: 2024\n")
    assert obj == WorkloadObject(kind="Pod", name="123", namespace="2024")
