"""Tests for the owner/administrator authority."""

import json
import tempfile
from pathlib import Path

import pytest

from tokenfactory.auth.models import Principal
from tokenfactory.auth.permissions import check_admin, check_owner, is_owner
from tokenfactory.auth.store import Authority, FileAuthority
from tokenfactory.errors import (
    AlreadyInitializedError,
    CorruptStateError,
    NotInitializedError,
    RegistryError,
)

DEPLOYER = Principal("ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM")
WALLET_1 = Principal("ST1SJ3DTE5DN7X54YDH5D64R3BCB6A2AG2ZQ8YPD5")
WALLET_2 = Principal("ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG")


# --- In-memory authority ---


def test_owner_is_fixed_at_construction():
    authority = Authority(DEPLOYER)
    assert authority.owner() == DEPLOYER


def test_no_admins_before_any_grant():
    authority = Authority(DEPLOYER)
    assert not authority.is_admin(WALLET_1)
    assert not authority.is_admin(DEPLOYER)
    assert authority.administrators() == []


def test_grant_and_revoke():
    authority = Authority(DEPLOYER)

    result = authority.set_administrator(DEPLOYER, WALLET_1, True)
    assert result.is_ok
    assert result.value is True
    assert authority.is_admin(WALLET_1)

    result = authority.set_administrator(DEPLOYER, WALLET_1, False)
    assert result.is_ok
    assert not authority.is_admin(WALLET_1)


def test_non_owner_cannot_set_administrator():
    authority = Authority(DEPLOYER)
    authority.set_administrator(DEPLOYER, WALLET_1, True)

    result = authority.set_administrator(WALLET_2, WALLET_1, False)
    assert result.error == RegistryError.UNAUTHORIZED
    assert result.code == 1
    # Table unchanged
    assert authority.is_admin(WALLET_1)
    assert authority.administrators() == [WALLET_1]


def test_admin_cannot_grant_other_admins():
    authority = Authority(DEPLOYER)
    authority.set_administrator(DEPLOYER, WALLET_1, True)

    result = authority.set_administrator(WALLET_1, WALLET_2, True)
    assert result.error == RegistryError.UNAUTHORIZED
    assert not authority.is_admin(WALLET_2)


def test_principal_equality_is_by_address():
    authority = Authority(DEPLOYER)
    authority.set_administrator(Principal(DEPLOYER.address), Principal(WALLET_1.address), True)
    assert authority.is_admin(WALLET_1)


def test_permission_checks():
    authority = Authority(DEPLOYER)
    authority.set_administrator(DEPLOYER, WALLET_1, True)

    assert is_owner(authority, DEPLOYER)
    assert check_owner(authority, DEPLOYER) is None
    assert check_owner(authority, WALLET_1) == RegistryError.UNAUTHORIZED
    assert check_admin(authority, WALLET_1) is None
    assert check_admin(authority, DEPLOYER) == RegistryError.UNAUTHORIZED


# --- File-backed authority ---


def test_file_authority_requires_init():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(NotInitializedError):
            FileAuthority(tmpdir)


def test_file_authority_persists_flags():
    with tempfile.TemporaryDirectory() as tmpdir:
        authority = FileAuthority.initialize(tmpdir, DEPLOYER)
        authority.set_administrator(DEPLOYER, WALLET_1, True)
        authority.set_administrator(DEPLOYER, WALLET_2, True)
        authority.set_administrator(DEPLOYER, WALLET_2, False)

        reopened = FileAuthority(tmpdir)
        assert reopened.owner() == DEPLOYER
        assert reopened.is_admin(WALLET_1)
        assert not reopened.is_admin(WALLET_2)


def test_file_authority_owner_written_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        FileAuthority.initialize(tmpdir, DEPLOYER)
        with pytest.raises(AlreadyInitializedError) as exc_info:
            FileAuthority.initialize(tmpdir, WALLET_1)
        assert exc_info.value.owner == DEPLOYER.address
        assert FileAuthority(tmpdir).owner() == DEPLOYER


def test_file_authority_rejected_call_leaves_file_untouched():
    with tempfile.TemporaryDirectory() as tmpdir:
        authority = FileAuthority.initialize(tmpdir, DEPLOYER)
        path = Path(tmpdir) / FileAuthority.FILE_NAME
        before = path.read_text()

        result = authority.set_administrator(WALLET_1, WALLET_1, True)
        assert result.is_err
        assert path.read_text() == before
        assert json.loads(before)["admins"] == []


def test_corrupt_authority_is_never_reinitialized():
    with tempfile.TemporaryDirectory() as tmpdir:
        FileAuthority.initialize(tmpdir, DEPLOYER)
        path = Path(tmpdir) / FileAuthority.FILE_NAME
        path.write_text(path.read_text()[:-3])
        damaged = path.read_text()

        with pytest.raises(CorruptStateError):
            FileAuthority.initialize(tmpdir, WALLET_2)
        with pytest.raises(CorruptStateError):
            FileAuthority(tmpdir)
        assert path.read_text() == damaged


def test_authority_file_without_owner_is_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / FileAuthority.FILE_NAME).write_text('{"admins": []}')
        with pytest.raises(CorruptStateError):
            FileAuthority(tmpdir)
        with pytest.raises(CorruptStateError):
            FileAuthority.initialize(tmpdir, WALLET_2)


def test_file_authorities_share_one_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        first = FileAuthority.initialize(tmpdir, DEPLOYER)
        second = FileAuthority(tmpdir)

        first.set_administrator(DEPLOYER, WALLET_1, True)
        assert second.is_admin(WALLET_1)

        second.set_administrator(DEPLOYER, WALLET_2, True)
        second.set_administrator(DEPLOYER, WALLET_1, False)
        assert not first.is_admin(WALLET_1)
        assert first.administrators() == [WALLET_2]


def test_failed_flag_write_leaves_state_unchanged(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        authority = FileAuthority.initialize(tmpdir, DEPLOYER)

        def fail(path, data):
            raise OSError("disk full")

        monkeypatch.setattr(FileAuthority, "_write_json", staticmethod(fail))
        with pytest.raises(OSError):
            authority.set_administrator(DEPLOYER, WALLET_1, True)
        monkeypatch.undo()

        assert not authority.is_admin(WALLET_1)
        assert not FileAuthority(tmpdir).is_admin(WALLET_1)
