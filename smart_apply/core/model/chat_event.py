"""Inbound chat events, as a tagged union discriminated by ``kind``."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class Command(BaseModel):
    kind: Literal["command"] = "command"
    name: str  # Without the leading "/" or any "@botname" suffix
    first_name: Optional[str] = None


class Text(BaseModel):
    kind: Literal["text"] = "text"
    body: str
    first_name: Optional[str] = None


class DocumentUpload(BaseModel):
    kind: Literal["document"] = "document"
    file_id: str
    mime_type: str = ""
    file_name: str = ""
    file_size: Optional[int] = None
    first_name: Optional[str] = None


ChatEvent = Annotated[Union[Command, Text, DocumentUpload], Field(discriminator="kind")]
