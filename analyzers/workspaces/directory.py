"""
analyzers/workspaces/directory.py - Active Directory 사용자/컴퓨터 조회

ldap3 SAFE_SYNC 전략을 사용하므로 하나의 Connection을 여러 워커 스레드에서
공유할 수 있습니다. search()는 (status, result, response, request)를 반환합니다.

조회 결과:
    - 항목 있음 → found=True, 비어 있는 속성은 ""
    - 항목 없음 → not_found() (오류가 아님)
    - 전송/서버 오류 → DirectoryQueryFailed
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ldap3 import BASE, NONE, SAFE_SYNC, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from core.config import LdapSettings
from core.exceptions import DirectoryQueryFailed

from .types import DirectoryComputerInfo, DirectoryUserInfo

logger = logging.getLogger(__name__)

USER_ATTRIBUTES = ["displayName", "name", "department", "userAccountControl", "mail", "manager", "mobile"]
COMPUTER_ATTRIBUTES = ["whenCreated", "operatingSystem"]
MANAGER_ATTRIBUTES = ["displayName", "name"]

# userAccountControl ACCOUNTDISABLE 플래그
UAC_ACCOUNT_DISABLE = 0x2

# LDAP 결과 코드
RESULT_SUCCESS = 0
RESULT_NO_SUCH_OBJECT = 32

CONNECT_TIMEOUT = 10
RECEIVE_TIMEOUT = 30


def create_connection(settings: LdapSettings) -> Connection:
    """읽기 전용 SAFE_SYNC 연결 생성 및 바인드

    Raises:
        DirectoryQueryFailed: 서버 연결 또는 바인드 실패
    """
    try:
        server = Server(
            settings.server,
            use_ssl=settings.use_ssl,
            get_info=NONE,
            connect_timeout=CONNECT_TIMEOUT,
        )
        conn = Connection(
            server,
            user=settings.user,
            password=settings.password,
            client_strategy=SAFE_SYNC,
            auto_bind=True,
            read_only=True,
            receive_timeout=RECEIVE_TIMEOUT,
        )
    except LDAPException as e:
        raise DirectoryQueryFailed(
            operation="bind",
            item=settings.server,
            error_code=type(e).__name__,
            error_message=str(e),
            cause=e,
        ) from e

    logger.debug(f"LDAP 바인드 완료: {settings.server}")
    return conn


def _first(attributes: dict[str, Any], name: str) -> Any:
    """단일/다중 값 속성에서 첫 값 추출 (없으면 None)"""
    value = attributes.get(name)
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _text(attributes: dict[str, Any], name: str) -> str:
    value = _first(attributes, name)
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _enabled(attributes: dict[str, Any]) -> bool | None:
    value = _first(attributes, "userAccountControl")
    if value in (None, ""):
        return None
    try:
        return not int(value) & UAC_ACCOUNT_DISABLE
    except (TypeError, ValueError):
        logger.debug(f"userAccountControl 해석 불가: {value!r}")
        return None


def parse_generalized_time(value: Any) -> datetime | None:
    """LDAP GeneralizedTime (예: 20240131093000.0Z) → datetime

    스키마 정보를 읽으면 ldap3가 이미 datetime으로 변환하므로 그대로 반환합니다.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    try:
        return datetime.strptime(str(value)[:14], "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        logger.debug(f"GeneralizedTime 해석 불가: {value!r}")
        return None


class DirectoryLookup:
    """디렉터리 사용자/컴퓨터 조회

    connection이 None이면 디렉터리 조회를 사용하지 않는 것으로 보고
    모든 조회가 not_found를 반환합니다.
    """

    def __init__(self, connection: Connection | None, base_dn: str = ""):
        self._conn = connection
        self.base_dn = base_dn

    @property
    def enabled(self) -> bool:
        return self._conn is not None

    def _search(
        self,
        operation: str,
        item: str,
        base: str,
        search_filter: str,
        scope: Any,
        attributes: list[str],
        missing_ok: bool = False,
    ) -> list[dict[str, Any]]:
        """검색 실행 후 searchResEntry 목록 반환

        missing_ok이면 base 자체가 없는 경우(noSuchObject)를 빈 목록으로 처리합니다.
        """
        try:
            _status, result, response, _request = self._conn.search(
                base,
                search_filter,
                search_scope=scope,
                attributes=attributes,
            )
        except LDAPException as e:
            raise DirectoryQueryFailed(
                operation=operation,
                item=item,
                error_code=type(e).__name__,
                error_message=str(e),
                cause=e,
            ) from e

        code = (result or {}).get("result", RESULT_SUCCESS)
        if code == RESULT_NO_SUCH_OBJECT and missing_ok:
            return []
        if code != RESULT_SUCCESS:
            raise DirectoryQueryFailed(
                operation=operation,
                item=item,
                error_code=result.get("description"),
                error_message=result.get("message") or None,
            )

        return [entry for entry in response or [] if entry.get("type") == "searchResEntry"]

    def resolve_user(self, user_name: str) -> DirectoryUserInfo:
        """sAMAccountName으로 사용자 조회

        manager가 있으면 관리자 DN을 표시 이름으로 추가 조회합니다.

        Raises:
            DirectoryQueryFailed: LDAP 전송/서버 오류
        """
        if not self.enabled or not user_name:
            return DirectoryUserInfo.not_found(user_name)

        search_filter = f"(&(objectCategory=person)(objectClass=user)(sAMAccountName={escape_filter_chars(user_name)}))"
        entries = self._search("search_user", user_name, self.base_dn, search_filter, SUBTREE, USER_ATTRIBUTES)
        if not entries:
            logger.debug(f"디렉터리 사용자 없음: {user_name}")
            return DirectoryUserInfo.not_found(user_name)

        attrs = entries[0].get("attributes", {})
        manager_dn = _text(attrs, "manager")

        return DirectoryUserInfo(
            user_name=user_name,
            found=True,
            full_name=_text(attrs, "displayName") or _text(attrs, "name"),
            department=_text(attrs, "department"),
            enabled=_enabled(attrs),
            email=_text(attrs, "mail"),
            manager=self.resolve_manager(manager_dn, user_name) if manager_dn else "",
            mobile=_text(attrs, "mobile"),
        )

    def resolve_manager(self, manager_dn: str, user_name: str = "") -> str:
        """관리자 DN → 표시 이름 (항목이 없으면 "")"""
        entries = self._search(
            "search_manager",
            user_name or manager_dn,
            manager_dn,
            "(objectClass=*)",
            BASE,
            MANAGER_ATTRIBUTES,
            missing_ok=True,
        )
        if not entries:
            logger.debug(f"관리자 항목 없음: {manager_dn}")
            return ""
        attrs = entries[0].get("attributes", {})
        return _text(attrs, "displayName") or _text(attrs, "name")

    def resolve_computer(self, computer_name: str) -> DirectoryComputerInfo:
        """컴퓨터 이름으로 컴퓨터 객체 조회

        Raises:
            DirectoryQueryFailed: LDAP 전송/서버 오류
        """
        if not self.enabled or not computer_name:
            return DirectoryComputerInfo.not_found(computer_name)

        search_filter = f"(&(objectClass=computer)(name={escape_filter_chars(computer_name)}))"
        entries = self._search(
            "search_computer", computer_name, self.base_dn, search_filter, SUBTREE, COMPUTER_ATTRIBUTES
        )
        if not entries:
            logger.debug(f"디렉터리 컴퓨터 없음: {computer_name}")
            return DirectoryComputerInfo.not_found(computer_name)

        attrs = entries[0].get("attributes", {})
        return DirectoryComputerInfo(
            computer_name=computer_name,
            found=True,
            created=parse_generalized_time(_first(attrs, "whenCreated")),
            operating_system=_text(attrs, "operatingSystem"),
        )

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.unbind()
            except LDAPException as e:
                logger.debug(f"LDAP unbind 실패: {e}")
