"""Utilities for interacting with the Supabase backend (REST + auth)."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import requests

from trip_estimate.profiles import Profile, profile_from_row, profile_to_row
from trip_estimate.records import EstimateRecord, utc_now_iso


logger = logging.getLogger(__name__)

ESTIMATES_TABLE = "estimates"
SHARES_TABLE = "estimate_shares"
PROFILES_TABLE = "profiles"
TOKEN_REFRESH_MARGIN_SECONDS = 60
_SHARED_ESTIMATE_SELECT = (
    "estimate_id,share_name,"
    "estimates(id,name,estimate_data,created_at,updated_at,user_id,creator_email)"
)


class SupabaseError(RuntimeError):
    """Raised when the Supabase backend rejects a request or is misconfigured."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SupabaseAuthError(SupabaseError):
    """Raised when an operation needs a signed-in user and there is none."""


@dataclass(frozen=True)
class SupabaseConfig:
    """Configuration for issuing requests to a Supabase project."""

    url: str
    anon_key: str
    timeout: int = 30
    verify_ssl: bool = True
    extra_headers: Dict[str, str] = field(default_factory=dict)

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.url.rstrip('/')}/auth/v1"

    def build_headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
        }
        headers.update(self.extra_headers)
        return headers


def build_supabase_config(settings: Optional[Mapping[str, Any]]) -> SupabaseConfig:
    if not settings:
        raise SupabaseError(
            "Supabase secrets are not configured; add a [supabase] table to `.streamlit/secrets.toml`."
        )

    url = str(settings.get("url") or "").strip()
    anon_key = str(settings.get("anon_key") or "").strip()
    if not url or not anon_key:
        raise SupabaseError("Supabase secrets must include both `url` and `anon_key`.")

    def _coerce_bool(value: Any, default: bool) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return default

    def _coerce_int(value: Any, default: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    extra_headers = settings.get("extra_headers")
    if isinstance(extra_headers, Mapping):
        sanitized_headers = {str(k): str(v) for k, v in extra_headers.items()}
    else:
        sanitized_headers = {}

    return SupabaseConfig(
        url=url,
        anon_key=anon_key,
        timeout=_coerce_int(settings.get("timeout"), 30),
        verify_ssl=_coerce_bool(settings.get("verify_ssl"), True),
        extra_headers=sanitized_headers,
    )


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    user_id: str
    email: Optional[str]
    expires_at: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, now: Optional[float] = None) -> "AuthSession":
        user = payload.get("user") or {}
        access_token = payload.get("access_token")
        user_id = user.get("id")
        if not access_token or not user_id:
            raise SupabaseError("Sign-in response did not include a session")

        expires_at: Optional[float] = None
        if payload.get("expires_at") is not None:
            expires_at = float(payload["expires_at"])
        elif payload.get("expires_in") is not None:
            expires_at = (time.time() if now is None else now) + float(payload["expires_in"])

        return cls(
            access_token=str(access_token),
            refresh_token=payload.get("refresh_token"),
            user_id=str(user_id),
            email=user.get("email"),
            expires_at=expires_at,
        )

    def expires_soon(self, *, margin: float = TOKEN_REFRESH_MARGIN_SECONDS, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        return (time.time() if now is None else now) >= self.expires_at - margin


def _error_message(response: Any) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping):
        for key in ("msg", "message", "error_description", "error"):
            value = payload.get(key)
            if value:
                return str(value)
    return f"HTTP {response.status_code}"


class SupabaseClient:
    """Thin PostgREST/GoTrue client scoped to one (optionally signed-in) user."""

    def __init__(
        self,
        config: SupabaseConfig,
        *,
        session: Optional[requests.Session] = None,
        auth: Optional[AuthSession] = None,
        on_session_refresh: Optional[Callable[[AuthSession], None]] = None,
    ) -> None:
        self.config = config
        self.http = session or requests.Session()
        self.auth = auth
        self.on_session_refresh = on_session_refresh

    # -- plumbing -------------------------------------------------------------
    def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[List[Tuple[str, str]]],
        json: Any,
        prefer: Optional[str],
        token: Optional[str],
    ) -> Any:
        headers = self.config.build_headers(token)
        if json is not None:
            headers["Content-Type"] = "application/json"
        if prefer:
            headers["Prefer"] = prefer
        logger.debug("Supabase %s %s", method, url)
        try:
            return self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            logger.warning("Supabase request failed: %s %s (%s)", method, url, exc)
            raise SupabaseError(f"Could not reach Supabase: {exc}") from exc

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[List[Tuple[str, str]]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
        use_session_token: bool = True,
    ) -> Any:
        token = self.auth.access_token if (self.auth and use_session_token) else None
        response = self._send(method, url, params=params, json=json, prefer=prefer, token=token)

        # An expired access token is refreshed once and the request replayed.
        if response.status_code == 401 and token and self.auth and self.auth.refresh_token:
            logger.info("Supabase access token rejected; refreshing session")
            self.refresh_session()
            response = self._send(
                method, url, params=params, json=json, prefer=prefer, token=self.auth.access_token
            )

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Supabase %s %s returned %s: %s", method, url, response.status_code, message)
            raise SupabaseError(message, status_code=response.status_code)
        if response.status_code == 204 or not getattr(response, "content", b"x"):
            return None
        return response.json()

    def _table_url(self, table: str) -> str:
        return f"{self.config.rest_url}/{table}"

    def _require_user(self) -> AuthSession:
        if self.auth is None:
            raise SupabaseAuthError("User not authenticated")
        return self.auth

    # -- auth -----------------------------------------------------------------
    def sign_in(self, email: str, password: str) -> AuthSession:
        payload = self._request(
            "POST",
            f"{self.config.auth_url}/token",
            params=[("grant_type", "password")],
            json={"email": email, "password": password},
            use_session_token=False,
        )
        self.auth = AuthSession.from_payload(payload or {})
        return self.auth

    def refresh_session(self) -> AuthSession:
        """Exchange the refresh token for a new access token."""

        if self.auth is None or not self.auth.refresh_token:
            raise SupabaseAuthError("User not authenticated")
        payload = self._request(
            "POST",
            f"{self.config.auth_url}/token",
            params=[("grant_type", "refresh_token")],
            json={"refresh_token": self.auth.refresh_token},
            use_session_token=False,
        )
        self.auth = AuthSession.from_payload(payload or {})
        if self.on_session_refresh is not None:
            self.on_session_refresh(self.auth)
        return self.auth

    def sign_out(self) -> None:
        if self.auth is None:
            return
        try:
            self._request("POST", f"{self.config.auth_url}/logout")
        finally:
            self.auth = None

    def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = [("redirect_to", redirect_to)] if redirect_to else None
        self._request(
            "POST",
            f"{self.config.auth_url}/recover",
            params=params,
            json={"email": email},
            use_session_token=False,
        )

    def update_password(self, new_password: str) -> None:
        self._require_user()
        self._request("PUT", f"{self.config.auth_url}/user", json={"password": new_password})

    # -- estimates ------------------------------------------------------------
    def list_estimates(self) -> List[EstimateRecord]:
        user = self._require_user()
        rows = self._request(
            "GET",
            self._table_url(ESTIMATES_TABLE),
            params=[("select", "*"), ("user_id", f"eq.{user.user_id}"), ("order", "created_at.desc")],
        )
        return [EstimateRecord.from_row(row) for row in rows or []]

    def load_estimate(self, estimate_id: str) -> Optional[EstimateRecord]:
        user = self._require_user()
        rows = self._request(
            "GET",
            self._table_url(ESTIMATES_TABLE),
            params=[("select", "*"), ("id", f"eq.{estimate_id}"), ("user_id", f"eq.{user.user_id}")],
        )
        if not rows:
            return None
        return EstimateRecord.from_row(rows[0])

    def save_estimate(self, name: str, data: Mapping[str, Any]) -> EstimateRecord:
        user = self._require_user()
        rows = self._request(
            "POST",
            self._table_url(ESTIMATES_TABLE),
            json={
                "user_id": user.user_id,
                "name": name,
                "estimate_data": dict(data),
                "creator_email": user.email,
            },
            prefer="return=representation",
        )
        if not rows:
            raise SupabaseError("Supabase did not return the saved estimate")
        return EstimateRecord.from_row(rows[0])

    def update_estimate(self, estimate_id: str, name: str, data: Mapping[str, Any]) -> EstimateRecord:
        user = self._require_user()
        rows = self._request(
            "PATCH",
            self._table_url(ESTIMATES_TABLE),
            params=[("id", f"eq.{estimate_id}"), ("user_id", f"eq.{user.user_id}")],
            json={"name": name, "estimate_data": dict(data), "updated_at": utc_now_iso()},
            prefer="return=representation",
        )
        if not rows:
            raise SupabaseError(f"Estimate {estimate_id} not found", status_code=404)
        return EstimateRecord.from_row(rows[0])

    def delete_estimate(self, estimate_id: str) -> bool:
        user = self._require_user()
        self._request(
            "DELETE",
            self._table_url(ESTIMATES_TABLE),
            params=[("id", f"eq.{estimate_id}"), ("user_id", f"eq.{user.user_id}")],
        )
        return True

    # -- sharing --------------------------------------------------------------
    def create_share(self, estimate_id: str, estimate_name: str) -> str:
        """Return the share token for ``estimate_id``, creating one if needed."""

        user = self._require_user()
        existing = self._request(
            "GET",
            self._table_url(SHARES_TABLE),
            params=[
                ("select", "share_token"),
                ("estimate_id", f"eq.{estimate_id}"),
                ("user_id", f"eq.{user.user_id}"),
            ],
        )
        if existing:
            return str(existing[0]["share_token"])

        rows = self._request(
            "POST",
            self._table_url(SHARES_TABLE),
            params=[("select", "share_token")],
            json={"estimate_id": estimate_id, "user_id": user.user_id, "share_name": estimate_name},
            prefer="return=representation",
        )
        if not rows or not rows[0].get("share_token"):
            raise SupabaseError("Supabase did not return a share token")
        return str(rows[0]["share_token"])

    def load_shared(self, token: str) -> EstimateRecord:
        """Load a shared estimate; works without signing in."""

        rows = self._request(
            "GET",
            self._table_url(SHARES_TABLE),
            params=[("select", _SHARED_ESTIMATE_SELECT), ("share_token", f"eq.{token}")],
        )
        if not rows or not rows[0].get("estimates"):
            raise SupabaseError("Shared estimate not found", status_code=404)
        return EstimateRecord.from_row(rows[0]["estimates"])

    def copy_shared(self, token: str, new_name: Optional[str] = None) -> EstimateRecord:
        self._require_user()
        shared = self.load_shared(token)
        return self.save_estimate(new_name or f"{shared.name} (Copy)", shared.data)

    def delete_share(self, estimate_id: str) -> None:
        user = self._require_user()
        self._request(
            "DELETE",
            self._table_url(SHARES_TABLE),
            params=[("estimate_id", f"eq.{estimate_id}"), ("user_id", f"eq.{user.user_id}")],
        )

    # -- profiles -------------------------------------------------------------
    def list_profiles(self) -> List[Profile]:
        user = self._require_user()
        rows = self._request(
            "GET",
            self._table_url(PROFILES_TABLE),
            params=[("select", "*"), ("user_id", f"eq.{user.user_id}"), ("order", "created_at.asc")],
        )
        return [profile_from_row(row) for row in rows or []]

    def create_profile(self, profile: Profile) -> Profile:
        user = self._require_user()
        if profile.is_default:
            self._clear_default_profiles(user)
        payload = profile_to_row(profile)
        payload["user_id"] = user.user_id
        rows = self._request(
            "POST",
            self._table_url(PROFILES_TABLE),
            json=payload,
            prefer="return=representation",
        )
        if not rows:
            raise SupabaseError("Supabase did not return the saved profile")
        return profile_from_row(rows[0])

    def update_profile(self, profile_id: str, profile: Profile) -> Profile:
        user = self._require_user()
        if profile.is_default:
            self._clear_default_profiles(user)
        payload = profile_to_row(profile)
        payload["updated_at"] = utc_now_iso()
        rows = self._request(
            "PATCH",
            self._table_url(PROFILES_TABLE),
            params=[("id", f"eq.{profile_id}"), ("user_id", f"eq.{user.user_id}")],
            json=payload,
            prefer="return=representation",
        )
        if not rows:
            raise SupabaseError(f"Profile {profile_id} not found", status_code=404)
        return profile_from_row(rows[0])

    def delete_profile(self, profile_id: str) -> None:
        user = self._require_user()
        self._request(
            "DELETE",
            self._table_url(PROFILES_TABLE),
            params=[("id", f"eq.{profile_id}"), ("user_id", f"eq.{user.user_id}")],
        )

    def set_default_profile(self, profile_id: str) -> None:
        user = self._require_user()
        self._clear_default_profiles(user)
        self._request(
            "PATCH",
            self._table_url(PROFILES_TABLE),
            params=[("id", f"eq.{profile_id}"), ("user_id", f"eq.{user.user_id}")],
            json={"is_default": True},
        )

    def _clear_default_profiles(self, user: AuthSession) -> None:
        self._request(
            "PATCH",
            self._table_url(PROFILES_TABLE),
            params=[("user_id", f"eq.{user.user_id}"), ("is_default", "eq.true")],
            json={"is_default": False},
        )
