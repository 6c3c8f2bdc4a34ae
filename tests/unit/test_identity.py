"""Unit tests for the in-process identity provider and toast channel."""

import pytest
from pydantic import ValidationError

from freshcut.core.identity import AppUser, LocalIdentityProvider
from freshcut.core.notifications import ToastChannel, ToastVariant


@pytest.mark.unit
class TestLocalIdentityProvider:
    """Tests for LocalIdentityProvider."""

    def test_starts_signed_out(self):
        assert LocalIdentityProvider().current_user() is None

    def test_sign_in_notifies_listeners(self, alice):
        identity = LocalIdentityProvider()
        seen = []
        identity.on_change(seen.append)

        identity.sign_in(alice)

        assert identity.current_user() == alice
        assert seen == [alice]

    def test_sign_out_notifies_once(self, alice):
        identity = LocalIdentityProvider(alice)
        seen = []
        identity.on_change(seen.append)

        identity.sign_out()
        identity.sign_out()

        assert seen == [None]

    def test_update_display_name_keeps_uid(self, alice):
        identity = LocalIdentityProvider(alice)

        updated = identity.update_display_name("Alice B.")

        assert updated.uid == alice.uid
        assert identity.current_user().display_name == "Alice B."

    def test_update_display_name_requires_user(self):
        with pytest.raises(LookupError):
            LocalIdentityProvider().update_display_name("Nobody")

    def test_uid_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            AppUser(uid="")


@pytest.mark.unit
class TestToastChannel:
    """Tests for ToastChannel."""

    def test_success_and_error_variants(self):
        toasts = ToastChannel()

        ok = toasts.success("Item added successfully.")
        bad = toasts.error("Failed to delete item.")

        assert (ok.title, ok.variant) == ("Success", ToastVariant.DEFAULT)
        assert (bad.title, bad.variant) == ("Error", ToastVariant.DESTRUCTIVE)

    def test_listeners_receive_toasts(self):
        toasts = ToastChannel()
        seen = []
        unsubscribe = toasts.subscribe(seen.append)

        toasts.notify("Heads up", "Something happened")
        unsubscribe()
        toasts.notify("Ignored", "Not delivered")

        assert [toast.title for toast in seen] == ["Heads up"]

    def test_history_is_bounded(self):
        toasts = ToastChannel(maxlen=2)

        for index in range(3):
            toasts.success(f"toast {index}")

        assert [toast.description for toast in toasts.history()] == ["toast 1", "toast 2"]
