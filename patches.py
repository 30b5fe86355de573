import base64
import logging

import pydantic_core

from models import Patch, PatchAction, PatchOp
from exc import PatchSerializationError

LOG = logging.getLogger(__name__)

ANNOTATIONS_PATH = "/metadata/annotations"


def json_patch_escape(val):
    return val.replace("~", "~0").replace("/", "~1")


def build_annotation_patch(
    existing: dict[str, str] | None, desired: dict[str, str]
) -> Patch:
    """Generate the JSON Patch that makes every key in `desired` present.

    A key that is missing (or empty) is written with an `add` against the
    whole annotations map, one operation per key. Existing keys are
    replaced in place.
    """

    actions = []
    for key, value in desired.items():
        if not existing or not existing.get(key):
            actions.append(
                PatchAction(op=PatchOp.ADD, path=ANNOTATIONS_PATH, value={key: value})
            )
        else:
            actions.append(
                PatchAction(
                    op=PatchOp.REPLACE,
                    path=f"{ANNOTATIONS_PATH}/{json_patch_escape(key)}",
                    value=value,
                )
            )

    return Patch(actions)


def encode_patch(patch: Patch) -> str:
    """Serialize a patch into the base64 form carried by AdmissionResponse."""

    try:
        data = patch.model_dump_json()
    except pydantic_core.PydanticSerializationError as err:
        LOG.error("failed to serialize patch: %s", err)
        raise PatchSerializationError(f"failed to serialize patch: {err}")

    LOG.info("AdmissionResponse: patch=%s", data)
    return base64.b64encode(data.encode()).decode()
