"""
Unit tests for the eBLU claim token and the BLU reward token.
"""

import hashlib

import pytest

from bluejay.core.contracts import MINTER_ROLE, ClaimToken, RewardToken
from bluejay.core.exceptions import TokenError

OWNER = "0x" + "11" * 20
EMPLOYEE = "0x" + "22" * 20
MINTER = "0x" + "33" * 20
OUTSIDER = "0x" + "99" * 20


class TestClaimToken:
    def test_defaults(self):
        token = ClaimToken(owner=OWNER)
        assert token.name == "eBLU"
        assert token.symbol == "eBLU"
        assert token.decimals == 18

    def test_owner_issues_tokens(self):
        token = ClaimToken(owner=OWNER)
        token.mint(OWNER, EMPLOYEE, 10**23)
        assert token.balance_of(EMPLOYEE) == 10**23

    def test_non_owner_cannot_issue(self):
        token = ClaimToken(owner=OWNER)
        with pytest.raises(TokenError):
            token.mint(EMPLOYEE, EMPLOYEE, 1)

    @pytest.mark.parametrize("operation", ["transfer", "approve"])
    def test_holder_cannot_move_tokens(self, operation):
        token = ClaimToken(owner=OWNER)
        token.mint(OWNER, EMPLOYEE, 100)
        with pytest.raises(TokenError, match="non-transferable"):
            getattr(token, operation)(EMPLOYEE, OWNER, 10)
        assert token.balance_of(EMPLOYEE) == 100

    def test_transfer_from_blocked(self):
        token = ClaimToken(owner=OWNER)
        token.mint(OWNER, EMPLOYEE, 100)
        with pytest.raises(TokenError, match="non-transferable"):
            token.transfer_from(OWNER, EMPLOYEE, OWNER, 10)

    def test_owner_burns_from_holder(self):
        token = ClaimToken(owner=OWNER)
        token.mint(OWNER, EMPLOYEE, 100)
        token.burn_from_holder(OWNER, EMPLOYEE, 40)
        assert token.balance_of(EMPLOYEE) == 60
        assert token.total_supply == 60

        with pytest.raises(TokenError):
            token.burn_from_holder(EMPLOYEE, EMPLOYEE, 1)

    def test_round_trip_keeps_type(self):
        token = ClaimToken(owner=OWNER)
        token.mint(OWNER, EMPLOYEE, 5)
        restored = ClaimToken.from_dict(token.to_dict())
        assert isinstance(restored, ClaimToken)
        assert restored.balance_of(EMPLOYEE) == 5
        with pytest.raises(TokenError):
            restored.transfer(EMPLOYEE, OWNER, 1)


class TestRewardToken:
    def test_initialize_mints_initial_supply_to_caller(self):
        token = RewardToken()
        token.initialize(OWNER, 10**24)

        assert token.owner == OWNER
        assert token.total_supply == 10**24
        assert token.balance_of(OWNER) == 10**24
        assert token.has_role(MINTER_ROLE, OWNER)

    def test_initialize_default_supply_is_one_million_tokens(self):
        token = RewardToken(owner=OWNER)
        token.initialize(OWNER)
        assert token.total_supply == 1_000_000 * 10**18

    def test_initialize_only_once(self):
        token = RewardToken(owner=OWNER)
        token.initialize(OWNER, 1)
        with pytest.raises(TokenError, match="already initialized"):
            token.initialize(OWNER, 1)

    def test_minting_requires_role(self):
        token = RewardToken(owner=OWNER)
        token.initialize(OWNER, 0)
        with pytest.raises(TokenError, match=MINTER_ROLE):
            token.mint(MINTER, MINTER, 1)

        token.grant_role(OWNER, MINTER_ROLE, MINTER)
        token.mint(MINTER, EMPLOYEE, 10)
        assert token.balance_of(EMPLOYEE) == 10

        token.revoke_role(OWNER, MINTER_ROLE, MINTER)
        with pytest.raises(TokenError):
            token.mint(MINTER, EMPLOYEE, 10)
        assert [change["action"] for change in token.role_changes] == ["grant", "revoke"]

    def test_only_owner_manages_roles(self):
        token = RewardToken(owner=OWNER)
        with pytest.raises(TokenError, match="not owner"):
            token.grant_role(MINTER, MINTER_ROLE, MINTER)

    def test_round_trip_keeps_roles(self):
        token = RewardToken(owner=OWNER)
        token.initialize(OWNER, 100)
        token.grant_role(OWNER, MINTER_ROLE, MINTER)

        restored = RewardToken.from_dict(token.to_dict())

        assert restored.initialized is True
        assert restored.has_role(MINTER_ROLE, MINTER)
        assert restored.get_total_supply() == 100
        restored.mint(MINTER, EMPLOYEE, 1)
        assert restored.get_total_supply() == 101

    def test_round_trip_keeps_role_audit_log(self):
        token = RewardToken(owner=OWNER)
        token.initialize(OWNER, 0)
        token.grant_role(OWNER, MINTER_ROLE, MINTER)
        token.revoke_role(OWNER, MINTER_ROLE, MINTER)

        restored = RewardToken.from_dict(token.to_dict())

        assert restored.role_changes == token.role_changes
        assert [change["action"] for change in restored.role_changes] == ["grant", "revoke"]
        assert restored.role_changes[0]["address"] == MINTER
        assert restored.role_changes[0]["admin"] == OWNER

    def test_minter_role_is_hashed_role_name(self):
        assert MINTER_ROLE == "0x" + hashlib.sha3_256(b"MINTER_ROLE").hexdigest()
        assert len(MINTER_ROLE) == 66

    def test_initialize_rejects_non_owner(self):
        token = RewardToken(owner=OWNER)
        with pytest.raises(TokenError, match="not owner"):
            token.initialize(OUTSIDER, 10**9)

        assert token.initialized is False
        assert not token.has_role(MINTER_ROLE, OUTSIDER)
        assert token.balance_of(OUTSIDER) == 0
        assert token.total_supply == 0

        token.initialize(OWNER, 10)
        assert token.balance_of(OWNER) == 10
