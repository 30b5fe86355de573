import pytest

import mutate


@pytest.fixture()
def app():
    app = mutate.create_app(
        TESTING=True,
        EXEMPT_NAMESPACES="kube-system,kube-public",
    )
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def policy(app):
    return app.policy


@pytest.fixture()
def make_review():
    return review_for


def review_for(namespace="default", annotations=None, uid="1234", kind="Secret"):
    metadata = {"name": "tls-cert", "namespace": namespace}
    if annotations is not None:
        metadata["annotations"] = annotations

    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": uid,
            "kind": {"group": "", "version": "v1", "kind": kind},
            "namespace": namespace,
            "name": "tls-cert",
            "operation": "CREATE",
            "userInfo": {"username": "system:serviceaccount:cert-manager:cert-manager"},
            "object": {
                "apiVersion": "v1",
                "kind": kind,
                "metadata": metadata,
                "type": "kubernetes.io/tls",
            },
        },
    }
