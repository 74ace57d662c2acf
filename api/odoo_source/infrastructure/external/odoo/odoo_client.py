"""
Cliente mínimo de Odoo sobre JSON-RPC (endpoint /jsonrpc).

Requisitos cubiertos:
- requests
- login (common.login) y llamadas a modelos (object.execute_kw)
- rate-limit/backoff (429, 5xx, errores de red)
- errores RPC de Odoo convertidos a RemoteCallError
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import requests
from loguru import logger

from odoo_source.shared.exceptions.sync import RemoteCallError


@dataclass(frozen=True)
class OdooCredentials:
    url: str
    database: str
    username: str
    password: str = field(repr=False)


class OdooClient:
    """
    Cliente JSON-RPC de Odoo.

    Importante:
    - No interpreta los resultados: eso lo hace el motor de sync.
    - No impone timeouts de negocio; `timeout_s` es solo el timeout de red.
    """

    def __init__(
        self,
        credentials: OdooCredentials,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = 30,
        max_retries: int = 3,
        min_backoff_s: float = 0.5,
        max_backoff_s: float = 10.0,
    ) -> None:
        self._creds = credentials
        self._endpoint = credentials.url.rstrip("/") + "/jsonrpc"
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._session = session or requests.Session()
        self._request_ids = itertools.count(1)
        self._uid: Optional[int] = None

    @property
    def uid(self) -> Optional[int]:
        return self._uid

    def login(self) -> int:
        """
        Autentica contra la base de datos y guarda el uid.

        Odoo responde False (no error) cuando las credenciales son inválidas.
        """
        uid = self._rpc(
            "common",
            "login",
            [self._creds.database, self._creds.username, self._creds.password],
        )
        if not uid:
            raise RemoteCallError(
                f"Autenticación rechazada para '{self._creds.username}' en {self._creds.database}",
                operation="login",
            )
        self._uid = uid
        logger.info(f"Sesión Odoo iniciada: {self._creds.username}@{self._creds.url} (uid={uid})")
        return uid

    def call(
        self,
        model: str,
        method: str,
        args: Optional[list[Any]] = None,
        kwargs: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Ejecuta `model.method(*args, **kwargs)` vía execute_kw."""
        if self._uid is None:
            raise RemoteCallError("Cliente Odoo sin sesión: llamar login() primero", model=model, operation=method)
        return self._rpc(
            "object",
            "execute_kw",
            [
                self._creds.database,
                self._uid,
                self._creds.password,
                model,
                method,
                list(args or []),
                dict(kwargs or {}),
            ],
        )

    def _rpc(self, service: str, method: str, args: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": "call",
            "params": {"service": service, "method": method, "args": args},
            "id": next(self._request_ids),
        }
        data = self._request_json(payload)
        error = data.get("error")
        if error:
            error_data = error.get("data") or {}
            message = error_data.get("message") or error.get("message") or "error desconocido"
            raise RemoteCallError(
                f"Odoo devolvió error en {service}.{method}: {message}",
                details={"rpc_error": error_data.get("name") or error.get("code")},
            )
        return data.get("result")

    def _request_json(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST con backoff para 429/5xx y errores de red.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial.
        - 5xx y errores de conexión: exponencial con jitter simple.
        - 4xx (no 429): error inmediato (url/config mal).
        """
        for attempt in range(self._max_retries + 1):
            try:
                resp = self._session.post(self._endpoint, json=payload, timeout=self._timeout_s)
            except requests.RequestException as e:
                if attempt >= self._max_retries:
                    raise RemoteCallError(
                        f"Odoo no responde tras {attempt} reintentos: {e}",
                        details={"url": self._endpoint},
                    ) from e
                time.sleep(self._backoff(attempt))
                continue

            if 200 <= resp.status_code < 300:
                try:
                    return resp.json()
                except ValueError as e:
                    raise RemoteCallError(
                        f"Respuesta de Odoo no es JSON ({resp.status_code})",
                        details={"url": self._endpoint},
                    ) from e

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise RemoteCallError(
                        f"Odoo error {resp.status_code} tras {attempt} reintentos: {resp.text[:500]}",
                        details={"url": self._endpoint, "status_code": resp.status_code},
                    )
                retry_after = resp.headers.get("Retry-After")
                try:
                    sleep_s = float(retry_after) if retry_after else self._backoff(attempt)
                except ValueError:
                    sleep_s = self._min_backoff_s
                logger.warning(f"Odoo respondió {resp.status_code}; reintento {attempt + 1} en {sleep_s:.1f}s")
                time.sleep(sleep_s)
                continue

            # Errores no recuperables
            raise RemoteCallError(
                f"Request a Odoo falló {resp.status_code}: {resp.text[:500]}",
                details={"url": self._endpoint, "status_code": resp.status_code},
            )

        # range() siempre retorna o levanta antes de llegar aquí
        raise RemoteCallError("Reintentos agotados", details={"url": self._endpoint})

    def _backoff(self, attempt: int) -> float:
        base = min(self._max_backoff_s, self._min_backoff_s * (2 ** attempt))
        return base + (0.15 * base)
