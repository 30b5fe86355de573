import pydantic
import pytest

import mutate
from policy import Decision, MutationPolicy

ISSUER = "cert-manager.io/certificate-name"
ORIGIN = "kubed.appscode.com/origin"


@pytest.mark.parametrize("namespace", ["kube-system", "kube-public"])
@pytest.mark.parametrize(
    "annotations",
    [None, {}, {ISSUER: "tls"}, {ISSUER: "tls", ORIGIN: "default/tls"}],
)
def test_exempt_namespace_always_skipped(policy, namespace, annotations):
    assert policy.decide(namespace, annotations) == Decision.SKIP


@pytest.mark.parametrize("annotations", [None, {}, {"example.com/other": "x"}])
def test_no_issuer_annotation_is_mutated(policy, annotations):
    assert policy.decide("default", annotations) == Decision.MUTATE


def test_issuer_without_origin_is_mutated(policy):
    assert policy.decide("default", {ISSUER: "tls"}) == Decision.MUTATE


def test_issuer_with_origin_is_skipped(policy):
    """Copies made by kubed carry the origin annotation and must not be
    marked for sync again."""
    assert policy.decide("default", {ISSUER: "tls", ORIGIN: "x"}) == Decision.SKIP


def test_origin_alone_does_not_skip(policy):
    assert policy.decide("default", {ORIGIN: "x"}) == Decision.MUTATE


def test_custom_exempt_namespaces():
    policy = MutationPolicy(
        exempt_namespaces=["platform"],
        issuer_annotation=ISSUER,
        origin_annotation=ORIGIN,
        sync_annotation="kubed.appscode.com/sync",
    )
    assert policy.decide("platform", {}) == Decision.SKIP
    assert policy.decide("kube-system", {}) == Decision.MUTATE


def test_policy_is_immutable(policy):
    with pytest.raises(pydantic.ValidationError):
        policy.exempt_namespaces = frozenset()


def test_desired_annotations(policy):
    assert policy.desired_annotations == {"kubed.appscode.com/sync": "true"}


def test_policy_requires_configuration():
    with pytest.raises(pydantic.ValidationError):
        MutationPolicy()


def test_app_policy_uses_defaults():
    """The app factory builds its policy from DEFAULTS."""
    policy = mutate.create_app(TESTING=True).policy
    assert policy.exempt_namespaces == frozenset(
        mutate.DEFAULTS.EXEMPT_NAMESPACES.split(",")
    )
    assert policy.issuer_annotation == mutate.DEFAULTS.ISSUER_ANNOTATION
    assert policy.origin_annotation == mutate.DEFAULTS.ORIGIN_ANNOTATION
    assert policy.sync_annotation == mutate.DEFAULTS.SYNC_ANNOTATION
