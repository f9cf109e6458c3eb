from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ItemCreate(BaseModel):
    """Body of POST /api/items. Anything beyond the two required fields is kept as-is."""

    model_config = ConfigDict(extra="allow")

    item_id: str
    item_name: str


class ApiResponse(BaseModel):
    isOk: bool
    data: Any = None
    error: Optional[str] = None


def ok(data: Any = None) -> dict:
    return ApiResponse(isOk=True, data=data).model_dump(exclude={"error"})


def failure(error: str) -> dict:
    return ApiResponse(isOk=False, error=error).model_dump(exclude={"data"})


def describe_validation_errors(errors: list[dict]) -> str:
    """Flatten pydantic errors into the one-line `error` of a failure envelope."""

    if any(
        err.get("type") == "missing" and tuple(err.get("loc", ())) == ("body",)
        for err in errors
    ):
        return "missing request body"

    missing = [
        str(err["loc"][-1])
        for err in errors
        if err.get("type") == "missing" and err.get("loc")
    ]
    if missing:
        return "missing fields: " + ", ".join(missing)

    for err in errors:
        if err.get("type") == "json_invalid":
            detail = (err.get("ctx") or {}).get("error") or err.get("msg")
            return f"invalid json: {detail}"

    parts = []
    for err in errors:
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts) or "invalid request"
