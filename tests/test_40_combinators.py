import pytest

from promize import (Deferred, Promise, PromiseAggregateError, Scheduler)

from .suppliers import Thenable, never_settle


def test_resolve(scheduler):
    p = Promise.resolve('v')
    assert p.is_pending
    scheduler.run()
    assert p.value == 'v'


def test_resolve_adopts_thenable(scheduler):
    thenable = Thenable()
    p = Promise.resolve(thenable)
    thenable.fire('adopted')
    scheduler.run()
    assert p.value == 'adopted'


def test_reject_does_not_unwrap(scheduler):
    inner = Promise.resolve(1)
    p = Promise.reject(inner)
    p.catch(lambda _: None)
    scheduler.run()
    assert p.is_rejected
    assert p.value is inner


def test_all_keeps_input_order(scheduler):
    first, second, third = Promise.deferred(), Promise.deferred(), Promise.deferred()
    p = Promise.all([first.promise, second.promise, third.promise])
    third.resolve(3)
    scheduler.run()
    first.resolve(1)
    scheduler.run()
    assert p.is_pending
    second.resolve(2)
    scheduler.run()
    assert p.value == [1, 2, 3]


def test_all_of_resolved(scheduler):
    p = Promise.all([Promise.resolve(1), Promise.resolve(2)])
    scheduler.run()
    assert p.value == [1, 2]


def test_all_rejects_with_first_reason(scheduler):
    slow = Promise.deferred()
    p = Promise.all([Promise.resolve(1), Promise.reject('x'), slow.promise])
    p.catch(lambda _: None)
    scheduler.run()
    assert p.is_rejected
    assert p.value == 'x'

    slow.reject('y')
    scheduler.run()
    assert p.value == 'x'


def test_all_empty(scheduler):
    p = Promise.all([])
    scheduler.run()
    assert p.is_resolved
    assert p.value == []


def test_all_coerces_values(scheduler):
    thenable = Thenable()
    p = Promise.all(iter([1, thenable, Promise.resolve(3)]))
    thenable.fire(2)
    scheduler.run()
    assert p.value == [1, 2, 3]


def test_race_fast_rejection(scheduler):
    slow = Promise.deferred()
    fast = Promise.deferred()
    p = Promise.race([slow.promise, fast.promise])
    p.catch(lambda _: None)
    fast.reject('fast')
    scheduler.run()
    assert p.is_rejected
    assert p.value == 'fast'

    slow.resolve('slow')
    scheduler.run()
    assert p.is_rejected
    assert p.value == 'fast'


def test_race_first_resolution(scheduler):
    never = Promise(never_settle)
    p = Promise.race([never, Promise.resolve('quick'), Promise.resolve('second')])
    scheduler.run()
    assert p.value == 'quick'


def test_race_empty(scheduler):
    p = Promise.race([])
    scheduler.run()
    assert p.is_pending


def test_all_settled(scheduler):
    ok = Promise.resolve(1)
    bad = Promise.reject('no')
    d = Promise.deferred()
    p = Promise.all_settled([ok, bad, d.promise])
    scheduler.run()
    assert p.is_pending

    d.resolve('late')
    scheduler.run()
    assert p.value == [ok, bad, d.promise]
    assert [q.state for q in p.value] == [ok.state, bad.state, d.promise.state]


def test_all_settled_empty(scheduler):
    p = Promise.all_settled([])
    scheduler.run()
    assert p.value == []


def test_any_first_resolution(scheduler):
    d = Promise.deferred()
    p = Promise.any([Promise.reject('a'), d.promise, Promise.reject('c')])
    scheduler.run()
    assert p.is_pending

    d.resolve('b')
    scheduler.run()
    assert p.value == 'b'


def test_any_all_rejected(scheduler):
    second = Promise.deferred()
    p = Promise.any([Promise.reject('a'), second.promise])
    p.catch(lambda _: None)
    second.reject('b')
    scheduler.run()
    assert p.is_rejected_due_to(PromiseAggregateError)
    assert p.value.errors == ['a', 'b']


def test_any_empty(scheduler):
    p = Promise.any([])
    p.catch(lambda _: None)
    scheduler.run()
    assert p.is_rejected_due_to(PromiseAggregateError)
    assert p.value.errors == []


def test_deferred(scheduler):
    d = Promise.deferred()
    assert isinstance(d, Deferred)
    promise, resolve, reject = d
    assert promise.is_pending
    resolve('outside')
    scheduler.run()
    assert promise.value == 'outside'


def test_defer_alias(scheduler):
    d = Promise.defer()
    d.reject('outside')
    d.promise.catch(lambda _: None)
    scheduler.run()
    assert d.promise.value == 'outside'


def test_settle(scheduler):
    p = Promise.resolve(1).then(lambda v: v + 1)
    assert Promise.settle(p) is p
    assert p.value == 2


def test_settle_stops_when_queue_is_empty():
    p = Promise(never_settle)
    assert Promise.settle(p).is_pending


def test_settle_requires_queue_scheduler():
    class Collecting(Scheduler):
        def __init__(self):
            self.callbacks = []

        def submit(self, callback):
            self.callbacks.append(callback)

    collecting = Collecting()
    p = Promise.resolve(1, scheduler=collecting)
    assert len(collecting.callbacks) == 1
    with pytest.raises(TypeError):
        Promise.settle(p)
    with pytest.raises(TypeError):
        Promise.settle('not a promise')
