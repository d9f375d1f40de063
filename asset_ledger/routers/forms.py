"""Request body helpers shared by the asset and stock routers.

Mutating endpoints accept multipart forms (fields plus file parts) and also
plain JSON bodies. Uploads are read completely into memory before any
database work starts; empty file parts are ignored.
"""
from typing import Optional, Type, TypeVar

from fastapi import Request, Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData
from starlette.datastructures import UploadFile as StarletteUploadFile

from asset_ledger.core.errors import AttachmentError, ValidationError
from asset_ledger.services.attachment_service import UploadedFile

ModelT = TypeVar("ModelT", bound=BaseModel)

_TRUE_VALUES = ("1", "true", "yes", "y", "on")


class RequestBody:
    def __init__(self, fields: dict, form: Optional[FormData] = None):
        self.fields = fields
        self.form = form

    def model(self, model: Type[ModelT]) -> ModelT:
        try:
            return model.model_validate(self.fields)
        except PydanticValidationError as exc:
            fields = [str(error["loc"][0]) for error in exc.errors() if error.get("loc")]
            raise ValidationError(
                "Invalid fields: {}".format(", ".join(fields) or "body"), fields
            ) from exc

    def flag(self, name: str) -> bool:
        value = self.fields.get(name)
        if isinstance(value, bool):
            return value
        return str(value or "").strip().lower() in _TRUE_VALUES

    async def file(self, name: str) -> Optional[UploadedFile]:
        files = await self.files(name)
        return files[0] if files else None

    async def files(self, name: str) -> list[UploadedFile]:
        if self.form is None:
            return []
        uploads = []
        for part in self.form.getlist(name):
            if not isinstance(part, StarletteUploadFile):
                continue
            upload = await read_upload(part)
            if upload is not None:
                uploads.append(upload)
        return uploads


async def read_upload(part: StarletteUploadFile) -> Optional[UploadedFile]:
    if not part.filename:
        return None
    try:
        data = await part.read()
    except OSError as exc:
        raise AttachmentError(f"Unable to read upload {part.filename}", cause=exc) from exc
    if not data:
        return None
    return UploadedFile(
        file_name=part.filename,
        content_type=part.content_type or "",
        data=data,
    )


async def read_body(request: Request) -> RequestBody:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as exc:
            raise ValidationError("Request body is not valid JSON", ["body"]) from exc
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return RequestBody(payload)

    form = await request.form()
    fields = {key: value for key, value in form.multi_items() if isinstance(value, str)}
    return RequestBody(fields, form)


def attachment_response(payload: dict) -> Response:
    disposition = "inline" if payload.get("inline") else "attachment"
    file_name = (
        str(payload["file_name"]).replace('"', "").encode("latin-1", "replace").decode("latin-1")
    )
    return Response(
        content=payload["data"],
        media_type=payload["mime_type"],
        headers={
            "Content-Disposition": f'{disposition}; filename="{file_name}"',
            "Cache-Control": "private, max-age=3600",
        },
    )


__all__ = ["RequestBody", "attachment_response", "read_body", "read_upload"]
