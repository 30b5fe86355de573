import logging

from enum import StrEnum
from pydantic import BaseModel, ConfigDict

LOG = logging.getLogger(__name__)


class Decision(StrEnum):
    SKIP = "skip"
    MUTATE = "mutate"


class MutationPolicy(BaseModel):
    """Decides whether a Secret should be marked for kubed synchronization.

    Secrets in an exempt namespace are never mutated. A Secret issued by
    cert-manager is mutated only if it is the original, i.e. it does not
    carry the kubed origin annotation that kubed puts on the copies it
    creates in other namespaces.
    """

    model_config = ConfigDict(frozen=True)

    exempt_namespaces: frozenset[str]
    issuer_annotation: str
    origin_annotation: str
    sync_annotation: str

    def admission_required(self, namespace: str | None) -> bool:
        return namespace not in self.exempt_namespaces

    def decide(
        self, namespace: str | None, annotations: dict[str, str] | None
    ) -> Decision:
        if not self.admission_required(namespace):
            LOG.info("skipping object in exempt namespace %s", namespace)
            return Decision.SKIP

        annotations = annotations or {}
        if (
            self.issuer_annotation in annotations
            and self.origin_annotation in annotations
        ):
            LOG.info("object carries origin annotation; not the original")
            return Decision.SKIP

        return Decision.MUTATE

    @property
    def desired_annotations(self) -> dict[str, str]:
        return {self.sync_annotation: "true"}
