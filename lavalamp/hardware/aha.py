"""
AVM home automation (AHA) switch controller, talking to a FRITZ!Box over HTTP.
"""

from __future__ import annotations

from typing import Dict, List, Optional
import hashlib
import logging
import re
import xml.etree.ElementTree as ET

import httpx

from .controller import BaseSwitchController, DeviceError

logger = logging.getLogger(__name__)

INVALID_SID = "0000000000000000"
_AIN_PATTERN = re.compile(r"^[0-9][0-9 ]{10,}$")


class SessionExpired(DeviceError):
    """
    The FRITZ!Box no longer accepts the cached session ID.
    """


def challenge_response(challenge: str, password: str) -> str:
    """
    Answer the FRITZ!Box login challenge (MD5 over UTF-16LE ``challenge-password``).
    """
    digest = hashlib.md5(f"{challenge}-{password}".encode("utf-16-le")).hexdigest()
    return f"{challenge}-{digest}"


class AhaClient:
    """
    Session-based access to ``webservices/homeautoswitch.lua``.
    """

    def __init__(
        self,
        host: str,
        password: str,
        user: Optional[str] = None,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        base_url = host if host.startswith(("http://", "https://")) else f"http://{host}"
        self.password = password
        self.user = user
        self._sid: Optional[str] = None
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def _get(self, path: str, params: Dict[str, str]) -> str:
        try:
            response = self._http.get(path, params=params)
            if response.status_code == 403 and "sid" in params:
                raise SessionExpired(f"AHA session {params['sid']} rejected")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeviceError(f"AHA request {path} failed: {exc}") from exc
        return response.text

    @staticmethod
    def _parse_session(body: str) -> Dict[str, str]:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as exc:
            raise DeviceError(f"Unexpected login response: {exc}") from exc
        return {
            "sid": root.findtext("SID") or INVALID_SID,
            "challenge": root.findtext("Challenge") or "",
        }

    def login(self) -> str:
        session = self._parse_session(self._get("/login_sid.lua", {}))
        if session["sid"] != INVALID_SID:
            self._sid = session["sid"]
            return self._sid

        params = {"response": challenge_response(session["challenge"], self.password)}
        if self.user:
            params["username"] = self.user
        session = self._parse_session(self._get("/login_sid.lua", params))
        if session["sid"] == INVALID_SID:
            raise DeviceError("AHA login failed; check host, user and password")
        self._sid = session["sid"]
        logger.debug("aha.login sid=%s", self._sid)
        return self._sid

    def command(self, switchcmd: str, ain: Optional[str] = None) -> str:
        """
        Run one ``switchcmd``. A rejected session is refreshed by logging in
        again once; the command itself is not repeated on any other failure.
        """
        try:
            return self._command(switchcmd, ain)
        except SessionExpired:
            logger.info("aha.session expired sid=%s; logging in again", self._sid)
            self._sid = None
            return self._command(switchcmd, ain)

    def _command(self, switchcmd: str, ain: Optional[str]) -> str:
        sid = self._sid or self.login()
        params = {"switchcmd": switchcmd, "sid": sid}
        if ain:
            params["ain"] = ain
        return self._get("/webservices/homeautoswitch.lua", params).strip()

    def switch_list(self) -> List[str]:
        raw = self.command("getswitchlist")
        return [ain.strip() for ain in raw.split(",") if ain.strip()]

    def resolve_ain(self, name: str) -> str:
        """
        Accept either an AIN or a switch name and return the AIN.
        """
        if _AIN_PATTERN.match(name):
            return name.replace(" ", "")
        for ain in self.switch_list():
            if self.command("getswitchname", ain) == name:
                return ain
        raise DeviceError(f"No AHA switch named '{name}'")


class AhaSwitchController(BaseSwitchController):
    """
    A single AHA outlet identified by name or AIN.
    """

    def __init__(self, client: AhaClient, name: str) -> None:
        self.client = client
        self.name = name
        self._ain: Optional[str] = None

    @property
    def ain(self) -> str:
        if self._ain is None:
            self._ain = self.client.resolve_ain(self.name)
        return self._ain

    def is_on(self) -> bool:
        state = self.client.command("getswitchstate", self.ain)
        if state not in ("0", "1"):
            raise DeviceError(f"Switch '{self.name}' reported state '{state}'")
        return state == "1"

    def set_state(self, is_on: bool) -> None:
        cmd = "setswitchon" if is_on else "setswitchoff"
        result = self.client.command(cmd, self.ain)
        if result != ("1" if is_on else "0"):
            raise DeviceError(f"Switch '{self.name}' did not accept {cmd} (got '{result}')")

    def close(self) -> None:
        self.client.close()
