from uuid import uuid4

import pytest

from src.domain.entities import Principal
from src.domain.errors import AuthenticationRequiredError, PermissionDeniedError
from src.domain.policy import assert_owner, can_read_user_links, require_admin, require_principal


def test_require_principal_missing():
    with pytest.raises(AuthenticationRequiredError):
        require_principal(None)


def test_require_admin_rejects_user():
    with pytest.raises(PermissionDeniedError):
        require_admin(Principal(id=uuid4(), role="user"))


def test_require_admin_without_principal_is_auth_error():
    with pytest.raises(AuthenticationRequiredError):
        require_admin(None)


def test_require_admin_accepts_admin():
    admin = Principal(id=uuid4(), role="admin")
    assert require_admin(admin) is admin


def test_assert_owner():
    owner = uuid4()
    assert_owner(owner, owner)

    with pytest.raises(PermissionDeniedError):
        assert_owner(uuid4(), owner)


def test_can_read_user_links():
    owner = uuid4()

    assert can_read_user_links(Principal(id=owner), owner) is True
    assert can_read_user_links(Principal(id=uuid4(), role="admin"), owner) is True
    assert can_read_user_links(Principal(id=uuid4()), owner) is False
