import functools
import logging

from flask import Flask, Response, request, current_app
from typing_extensions import Protocol

from models import (
    AdmissionRequest,
    AdmissionReview,
    AdmissionResponse,
    AdmissionReviewStatus,
    PatchType,
    Secret,
)
from policy import Decision, MutationPolicy
from patches import build_annotation_patch, encode_patch
from review import decode_review, decode_object, encode_review
from exc import ApplicationError, DecodeError, PatchSerializationError, TransportError

LOG = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class DEFAULTS:
    EXEMPT_NAMESPACES = "kube-system,kube-public"
    ISSUER_ANNOTATION = "cert-manager.io/certificate-name"
    ORIGIN_ANNOTATION = "kubed.appscode.com/origin"
    SYNC_ANNOTATION = "kubed.appscode.com/sync"


class Mutator(Protocol):
    def __call__(
        self, policy: MutationPolicy, req: AdmissionRequest
    ) -> AdmissionResponse: ...


def reviewresponse():
    """Encodes the AdmissionReview returned by a view function as JSON."""

    def _outer(func):
        @functools.wraps(func)
        def _inner(*args, **kwargs):
            res = func(*args, **kwargs)
            return Response(encode_review(res), 200, mimetype="application/json")

        return _inner

    return _outer


def mutate_secret(policy: MutationPolicy, req: AdmissionRequest) -> AdmissionResponse:
    secret = decode_object(req, Secret)
    name = secret.metadata.name or req.name
    namespace = secret.metadata.namespace or req.namespace
    annotations = secret.metadata.annotations

    if policy.decide(namespace, annotations) == Decision.SKIP:
        LOG.info("Skipping mutation for %s/%s due to policy check", namespace, name)
        return AdmissionResponse(allowed=True)

    patch = build_annotation_patch(annotations, policy.desired_annotations)
    return AdmissionResponse(
        allowed=True,
        patchType=PatchType.JSONPatch,
        patch=encode_patch(patch),
    )


# Resource kinds this webhook knows how to mutate. Anything else is admitted
# unchanged.
MUTATORS: dict[str, Mutator] = {
    "Secret": mutate_secret,
}


def admit(policy: MutationPolicy, req: AdmissionRequest) -> AdmissionResponse:
    kind = req.kind.kind if req.kind else (req.object or {}).get("kind")
    mutator = MUTATORS.get(kind)
    if mutator is None:
        LOG.info("No mutation registered for kind %s", kind)
        return AdmissionResponse(allowed=True)

    try:
        return mutator(policy, req)
    except (DecodeError, PatchSerializationError) as err:
        return AdmissionResponse(status=AdmissionReviewStatus(message=str(err)))


@reviewresponse()
def mutate_review():
    body = request.get_data()
    if not body:
        LOG.error("empty body")
        raise TransportError("empty body", 400)

    if request.mimetype != "application/json":
        LOG.error("Content-Type=%s, expect application/json", request.content_type)
        raise TransportError("invalid Content-Type, expect `application/json`", 415)

    try:
        review = decode_review(body)
    except DecodeError as err:
        return AdmissionReview(
            response=AdmissionResponse(status=AdmissionReviewStatus(message=str(err)))
        )

    req = review.request
    LOG.info(
        "AdmissionReview for Kind=%s Namespace=%s Name=%s UID=%s Operation=%s UserInfo=%s",
        req.kind,
        req.namespace,
        req.name,
        req.uid,
        req.operation,
        req.userInfo,
    )

    response = admit(current_app.policy, req)
    return AdmissionReview(
        apiVersion=review.apiVersion,
        response=response.model_copy(update={"uid": req.uid}),
    )


def handle_transporterror(err):
    return str(err), err.status_code, {"content-type": "text/plain"}


def handle_applicationerror(err):
    return str(err), 500, {"content-type": "text/plain"}


def health():
    return "OK", 200, {"content-type": "text/plain"}


def split_list(val):
    if isinstance(val, str):
        return [item.strip() for item in val.split(",") if item.strip()]
    return list(val)


def create_app(**config) -> Flask:
    """Use an application factory [1] to create the Flask app.

    Configuration comes from DEFAULTS, then from SECRET_SYNC_* environment
    variables, then from keyword arguments. It is frozen into a single
    MutationPolicy at startup.

    [1]: https://flask.palletsprojects.com/en/3.0.x/patterns/appfactories/
    """

    app = Flask(__name__)
    app.config.from_object(DEFAULTS)
    app.config.from_prefixed_env("SECRET_SYNC")
    if config:
        app.config.update(config)

    app.policy = MutationPolicy(
        exempt_namespaces=split_list(app.config["EXEMPT_NAMESPACES"]),
        issuer_annotation=app.config["ISSUER_ANNOTATION"],
        origin_annotation=app.config["ORIGIN_ANNOTATION"],
        sync_annotation=app.config["SYNC_ANNOTATION"],
    )
    LOG.info("Exempt namespaces: %s", sorted(app.policy.exempt_namespaces))

    app.errorhandler(TransportError)(handle_transporterror)
    app.errorhandler(ApplicationError)(handle_applicationerror)
    app.add_url_rule("/healthz", view_func=health)
    app.add_url_rule("/mutate", view_func=mutate_review, methods=["POST"])

    return app
