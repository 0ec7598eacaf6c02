"""
Async HTTP gateway over the TuBarrio API.

Every public coroutine returns either the requested data or one of the
failures in ``app.client.outcomes``. Transport errors never escape.
"""

import functools
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
from pydantic import BaseModel, ValidationError

from app import config
from app.client.outcomes import Failure, NotFound, TransientFailure, Unauthorized, ValidationFailure
from app.schemas import AuthoredComment, CommentOut, ReportOut, ReportPage, SessionUser, TokenResponse

logger = logging.getLogger(__name__)

# (filename, content, content type)
ImageFile = Tuple[str, bytes, str]


class FilterState(BaseModel):
    keyword: str = ""
    barrio: str = ""  # "" means any zone
    type: str = ""  # "" means any type


def failure_from_response(response: httpx.Response) -> Failure:
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        detail = None

    code = response.status_code
    message = detail if isinstance(detail, str) else None

    if code == 404:
        return NotFound(message=message or "No encontrado")
    if code in (401, 403):
        return Unauthorized(message=message or "No autorizado")
    if code in (400, 409, 422):
        return ValidationFailure(message=message or "Datos inválidos", errors=detail)
    return TransientFailure(message=message or "Error al cargar", status_code=code)


def _requires_token(method):
    """Answer ``Unauthorized`` locally, without a request, when there is no session token."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        if not self.token:
            logger.info("%s skipped: not signed in", method.__name__)
            return Unauthorized(message="Debes iniciar sesión")
        return await method(self, *args, **kwargs)

    return wrapper


class ReportsGateway:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, **kwargs) -> Union[httpx.Response, Failure]:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            return TransientFailure(message="Error de red")

        if response.is_success:
            return response

        failure = failure_from_response(response)
        logger.info("%s %s -> %s (%s)", method, path, response.status_code, failure.kind)
        return failure

    async def _parse(self, method: str, path: str, model, **kwargs):
        response = await self._request(method, path, **kwargs)
        if not isinstance(response, httpx.Response):
            return response

        try:
            if isinstance(model, list):
                return [model[0].model_validate(item) for item in response.json()]
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Unexpected payload from %s %s: %s", method, path, e)
            return TransientFailure(message="Respuesta inesperada del servidor")

    @staticmethod
    def _form(fields: Dict[str, Any], image: Optional[ImageFile]) -> Dict[str, Any]:
        data = {k: v for k, v in fields.items() if v is not None}
        files = {"image": image} if image else None
        return {"data": data, "files": files}

    # Auth
    async def register(self, first_name: str, last_name: str, email: str, password: str):
        payload = {"first_name": first_name, "last_name": last_name, "email": email, "password": password}
        return await self._parse("POST", "/auth/register", TokenResponse, json=payload)

    async def login(self, email: str, password: str):
        return await self._parse("POST", "/auth/login", TokenResponse, json={"email": email, "password": password})

    @_requires_token
    async def refresh(self):
        return await self._parse("POST", "/auth/refresh", TokenResponse)

    @_requires_token
    async def me(self):
        return await self._parse("GET", "/auth/me", SessionUser)

    @_requires_token
    async def update_profile(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        avatar: Optional[ImageFile] = None,
    ):
        data = {k: v for k, v in (("first_name", first_name), ("last_name", last_name)) if v is not None}
        files = {"avatar": avatar} if avatar else None
        return await self._parse("PATCH", "/profile/me", SessionUser, data=data, files=files)

    # Reports
    async def list_reports(
        self,
        page: int = 1,
        page_size: int = config.REPORTS_PER_PAGE,
        filters: Optional[FilterState] = None,
        before: Optional[str] = None,
    ):
        params = {"page": page, "page_size": page_size}
        if before:
            params["before"] = before
        if filters:
            params.update({k: v for k, v in filters.model_dump().items() if v})
        return await self._parse("GET", "/reports", ReportPage, params=params)

    async def get_report(self, report_id: Union[str, uuid.UUID]):
        return await self._parse("GET", f"/reports/{report_id}", ReportOut)

    @_requires_token
    async def create_report(
        self,
        title: str,
        description: str,
        type: str,
        barrio: str,
        location: str = "",
        image: Optional[ImageFile] = None,
    ):
        fields = {"title": title, "description": description, "type": type, "barrio": barrio, "location": location}
        return await self._parse("POST", "/reports", ReportOut, **self._form(fields, image))

    @_requires_token
    async def update_report(
        self,
        report_id: Union[str, uuid.UUID],
        image: Optional[ImageFile] = None,
        remove_images: bool = False,
        **fields,
    ):
        if remove_images:
            fields["remove_images"] = "true"
        return await self._parse("PATCH", f"/reports/{report_id}", ReportOut, **self._form(fields, image))

    @_requires_token
    async def set_status(self, report_id: Union[str, uuid.UUID], status: str):
        return await self._parse("PATCH", f"/reports/{report_id}/status", ReportOut, json={"status": status})

    @_requires_token
    async def delete_report(self, report_id: Union[str, uuid.UUID]) -> Optional[Failure]:
        response = await self._request("DELETE", f"/reports/{report_id}")
        return None if isinstance(response, httpx.Response) else response

    @_requires_token
    async def toggle_support(self, report_id: Union[str, uuid.UUID]):
        return await self._parse("POST", f"/reports/{report_id}/support", ReportOut)

    # Comments
    @_requires_token
    async def add_comment(
        self,
        report_id: Union[str, uuid.UUID],
        content: str,
        image: Optional[ImageFile] = None,
    ):
        return await self._parse(
            "POST", f"/reports/{report_id}/comments", CommentOut, **self._form({"content": content}, image)
        )

    @_requires_token
    async def delete_comment(
        self, report_id: Union[str, uuid.UUID], comment_id: Union[str, uuid.UUID]
    ) -> Optional[Failure]:
        response = await self._request("DELETE", f"/reports/{report_id}/comments/{comment_id}")
        return None if isinstance(response, httpx.Response) else response

    # Contributions
    @_requires_token
    async def my_reports(self) -> Union[List[ReportOut], Failure]:
        return await self._parse("GET", "/profile/reports", [ReportOut])

    @_requires_token
    async def my_comments(self) -> Union[List[AuthoredComment], Failure]:
        return await self._parse("GET", "/profile/comments", [AuthoredComment])
