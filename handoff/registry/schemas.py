import mimetypes
from pathlib import Path
from typing import Union
from pydantic import BaseModel, ConfigDict

DEFAULT_CONTENT_TYPE = "application/octet-stream"

class TransferRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    # Parsed as a MIME type by the registry; never empty
    contentType: str = DEFAULT_CONTENT_TYPE

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "TransferRequest":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(filename=p.name, contentType=guessed or DEFAULT_CONTENT_TYPE)

class TransferHandle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str

    def receive_url(self, origin: str) -> str:
        return f"{origin.rstrip('/')}/api/receive/{self.id}"
