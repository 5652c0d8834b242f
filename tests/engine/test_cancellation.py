import threading

import pytest
from dbsize.engine.cancellation import CancellationToken, check_for_interrupts
from dbsize.engine.errors import QueryCanceledError, ErrorCategory


def test_token_not_cancelled():
    token = CancellationToken()
    assert not token.is_cancelled
    token.check()
    check_for_interrupts(token)
    check_for_interrupts(None)


def test_cancel_raises_on_check():
    token = CancellationToken()
    token.cancel('statement timeout')
    assert token.is_cancelled
    with pytest.raises(QueryCanceledError) as exc:
        check_for_interrupts(token)
    assert str(exc.value) == 'statement timeout'
    assert exc.value.category == ErrorCategory.CANCELED


def test_cancel_from_another_thread():
    token = CancellationToken()
    t = threading.Thread(target=token.cancel)
    t.start()
    t.join()
    with pytest.raises(QueryCanceledError) as exc:
        token.check()
    assert 'canceling statement' in str(exc.value)
