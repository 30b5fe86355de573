"""Conversion between raw HTTP bodies and AdmissionReview envelopes."""

import logging
from typing import TypeVar

import pydantic
import pydantic_core

from models import AdmissionRequest, AdmissionReview, BaseModel
from exc import DecodeError, EncodeError

LOG = logging.getLogger(__name__)


def decode_review(body: bytes) -> AdmissionReview:
    try:
        review = AdmissionReview.model_validate_json(body)
    except pydantic.ValidationError as err:
        LOG.error("can't decode body: %s", err)
        raise DecodeError(f"can't decode body: {err}")

    if review.request is None:
        LOG.error("admission review contains no request")
        raise DecodeError("admission review contains no request")

    return review


T = TypeVar("T", bound=BaseModel)


def decode_object(request: AdmissionRequest, model: type[T]) -> T:
    """Deserialize the object embedded in an admission request."""

    if request.object is None:
        raise DecodeError("admission request contains no object")

    try:
        return model.model_validate(request.object)
    except pydantic.ValidationError as err:
        LOG.error("could not unmarshal raw object: %s", err)
        raise DecodeError(f"could not unmarshal raw object: {err}")


def encode_review(review: AdmissionReview) -> bytes:
    try:
        return review.model_dump_json(exclude_none=True).encode()
    except pydantic_core.PydanticSerializationError as err:
        LOG.error("can't encode response: %s", err)
        raise EncodeError(f"could not encode response: {err}")
