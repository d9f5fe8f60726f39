"""Adapter around the external face feature extractor."""

from __future__ import annotations

import base64
import binascii
import logging

import cv2
import face_recognition
import numpy as np

from ..core.exceptions import NoFaceDetectedError, ValidationError
from .base import DescriptorExtractor

logger = logging.getLogger(__name__)


def decode_image(image_b64: str) -> np.ndarray:
    """Decode a base64 (optionally data-URL) image into a contiguous RGB array."""

    payload = image_b64.split(",", 1)[1] if image_b64.startswith("data:") else image_b64
    try:
        img_bytes = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        raise ValidationError("Image is not valid base64")

    img = cv2.imdecode(np.frombuffer(img_bytes, np.uint8), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValidationError("Image could not be decoded")

    if len(img.shape) == 3 and img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    elif len(img.shape) == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)

    rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    # dlib needs a contiguous uint8 buffer.
    return np.ascontiguousarray(rgb, dtype=np.uint8)


class FaceRecognitionExtractor(DescriptorExtractor):
    """128-d dlib encodings via the face_recognition package."""

    def __init__(self, *, model: str = "hog"):
        self._model = model

    def extract(self, image_b64: str) -> list[float]:
        rgb = decode_image(image_b64)
        boxes = face_recognition.face_locations(rgb, model=self._model)
        if not boxes:
            raise NoFaceDetectedError("No face detected. Please face the camera and try again.")
        if len(boxes) > 1:
            logger.info(f"{len(boxes)} faces in frame, using the first one")
        encoding = face_recognition.face_encodings(rgb, boxes[:1])[0]
        return encoding.tolist()
