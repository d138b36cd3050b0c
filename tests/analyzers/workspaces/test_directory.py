"""
tests/analyzers/workspaces/test_directory.py - DirectoryLookup 테스트

ldap3 Connection은 MagicMock으로 대체하고 SAFE_SYNC 반환 형식을 흉내냅니다.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from conftest import create_ldap_search_result
from ldap3.core.exceptions import LDAPSocketOpenError

from analyzers.workspaces.directory import DirectoryLookup, create_connection, parse_generalized_time
from core.config import LdapSettings
from core.exceptions import DirectoryQueryFailed

BASE_DN = "DC=corp,DC=example,DC=com"
MANAGER_DN = "CN=Kim Manager,OU=Users,DC=corp,DC=example,DC=com"


def _user_entry(**attributes):
    defaults = {
        "displayName": "John Doe",
        "department": "Engineering",
        "userAccountControl": 512,
        "mail": "jdoe@example.com",
        "mobile": "010-0000-0000",
    }
    defaults.update(attributes)
    return {"dn": "CN=John Doe,OU=Users," + BASE_DN, "attributes": defaults}


class TestResolveUser:
    """resolve_user 테스트"""

    def test_found(self, mock_ldap_connection):
        mock_ldap_connection.search.return_value = create_ldap_search_result([_user_entry()])

        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        assert info.found is True
        assert info.full_name == "John Doe"
        assert info.department == "Engineering"
        assert info.enabled is True
        assert info.email == "jdoe@example.com"
        assert info.manager == ""
        assert mock_ldap_connection.search.call_count == 1

    def test_search_filter_and_base(self, mock_ldap_connection):
        DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        args = mock_ldap_connection.search.call_args.args
        assert args[0] == BASE_DN
        assert "(sAMAccountName=jdoe)" in args[1]

    def test_filter_escaped(self, mock_ldap_connection):
        DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("a*b")

        assert "(sAMAccountName=a\\2ab)" in mock_ldap_connection.search.call_args.args[1]

    def test_not_found(self, mock_ldap_connection):
        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("ghost")

        assert info.found is False
        assert info.full_name is None
        assert info.manager is None

    def test_disabled_account(self, mock_ldap_connection):
        mock_ldap_connection.search.return_value = create_ldap_search_result([_user_entry(userAccountControl=514)])

        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        assert info.enabled is False

    def test_empty_attributes_become_empty_string(self, mock_ldap_connection):
        mock_ldap_connection.search.return_value = create_ldap_search_result(
            [{"attributes": {"displayName": [], "name": "jdoe", "department": []}}]
        )

        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        assert info.full_name == "jdoe"
        assert info.department == ""
        assert info.mobile == ""
        assert info.enabled is None

    def test_manager_resolved_to_display_name(self, mock_ldap_connection):
        mock_ldap_connection.search.side_effect = [
            create_ldap_search_result([_user_entry(manager=MANAGER_DN)]),
            create_ldap_search_result([{"attributes": {"displayName": "Kim Manager"}}]),
        ]

        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        assert info.manager == "Kim Manager"
        assert mock_ldap_connection.search.call_args_list[1].args[0] == MANAGER_DN

    def test_missing_manager_entry(self, mock_ldap_connection):
        mock_ldap_connection.search.side_effect = [
            create_ldap_search_result([_user_entry(manager=MANAGER_DN)]),
            create_ldap_search_result(result_code=32, description="noSuchObject"),
        ]

        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        assert info.found is True
        assert info.manager == ""

    def test_server_error(self, mock_ldap_connection):
        mock_ldap_connection.search.return_value = create_ldap_search_result(
            result_code=51, description="busy", message="server busy"
        )

        with pytest.raises(DirectoryQueryFailed) as exc_info:
            DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        assert exc_info.value.error_code == "busy"
        assert exc_info.value.reason == "server busy"

    def test_no_such_base_is_error(self, mock_ldap_connection):
        mock_ldap_connection.search.return_value = create_ldap_search_result(result_code=32, description="noSuchObject")

        with pytest.raises(DirectoryQueryFailed):
            DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

    def test_transport_error(self, mock_ldap_connection):
        mock_ldap_connection.search.side_effect = LDAPSocketOpenError("connection refused")

        with pytest.raises(DirectoryQueryFailed) as exc_info:
            DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_user("jdoe")

        assert exc_info.value.error_code == "LDAPSocketOpenError"


class TestResolveComputer:
    """resolve_computer 테스트"""

    def test_found(self, mock_ldap_connection):
        mock_ldap_connection.search.return_value = create_ldap_search_result(
            [{"attributes": {"whenCreated": "20240131093000.0Z", "operatingSystem": "Windows Server 2019"}}]
        )

        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_computer("WS-0001")

        assert info.found is True
        assert info.created == datetime(2024, 1, 31, 9, 30, tzinfo=timezone.utc)
        assert info.operating_system == "Windows Server 2019"

    def test_not_found(self, mock_ldap_connection):
        info = DirectoryLookup(mock_ldap_connection, BASE_DN).resolve_computer("WS-0001")

        assert info.found is False
        assert info.created is None


class TestDisabledLookup:
    """디렉터리 조회 비활성화 테스트"""

    def test_everything_not_found(self):
        lookup = DirectoryLookup(None)

        assert lookup.enabled is False
        assert lookup.resolve_user("jdoe").found is False
        assert lookup.resolve_computer("WS-0001").found is False
        lookup.close()

    def test_close_unbinds(self, mock_ldap_connection):
        DirectoryLookup(mock_ldap_connection, BASE_DN).close()

        mock_ldap_connection.unbind.assert_called_once()


class TestCreateConnection:
    """create_connection 테스트"""

    def test_bind_failure(self):
        settings = LdapSettings(enabled=True, server="ldaps://dc01", base_dn=BASE_DN, user="u", password="p")

        with patch("analyzers.workspaces.directory.Connection", side_effect=LDAPSocketOpenError("refused")):
            with pytest.raises(DirectoryQueryFailed) as exc_info:
                create_connection(settings)

        assert exc_info.value.operation == "bind"
        assert exc_info.value.item == "ldaps://dc01"


class TestParseGeneralizedTime:
    """parse_generalized_time 테스트"""

    def test_passthrough_datetime(self):
        value = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert parse_generalized_time(value) is value

    def test_bytes(self):
        assert parse_generalized_time(b"20230101000000.0Z") == datetime(2023, 1, 1, tzinfo=timezone.utc)

    def test_invalid(self):
        assert parse_generalized_time("garbage") is None
        assert parse_generalized_time(None) is None
