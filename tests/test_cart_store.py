import threading

import pytest

from storefront.services.cart_store import CartStore, InMemoryCartStorage, MAX_LINE_QUANTITY

SESSION = "session-a"


@pytest.fixture()
def store():
    return CartStore()


def test_new_session_has_empty_cart(store):
    assert len(store.get(SESSION)) == 0


@pytest.mark.parametrize("qty, expected", [(1, 1), (5, 5), (99, 99), (100, 99), (1000, 99)])
def test_add_to_empty_cart_caps_at_max(store, qty, expected):
    cart = store.add(SESSION, 1, qty)
    assert cart.quantity_of(1) == expected


def test_add_accumulates_and_caps(store):
    store.add(SESSION, 1, 60)
    cart = store.add(SESSION, 1, 60)
    assert cart.quantity_of(1) == MAX_LINE_QUANTITY


def test_negative_delta_decrements(store):
    store.add(SESSION, 1, 5)
    cart = store.add(SESSION, 1, -3)
    assert cart.quantity_of(1) == 2


def test_decrement_below_zero_removes_line(store):
    store.add(SESSION, 1, 5)
    cart = store.add(SESSION, 1, -10)
    assert 1 not in cart.product_ids()


def test_negative_delta_on_absent_line_is_noop(store):
    cart = store.add(SESSION, 1, -2)
    assert len(cart) == 0


def test_zero_delta_does_not_create_line(store):
    cart = store.add(SESSION, 1, 0)
    assert len(cart) == 0


def test_set_quantity_is_idempotent(store):
    store.set_quantity(SESSION, 1, 4)
    cart = store.set_quantity(SESSION, 1, 4)
    assert cart.quantity_of(1) == 4


@pytest.mark.parametrize("qty", [0, -1])
def test_set_non_positive_removes(store, qty):
    store.add(SESSION, 1, 3)
    cart = store.set_quantity(SESSION, 1, qty)
    assert 1 not in cart.product_ids()


def test_set_caps_at_max(store):
    cart = store.set_quantity(SESSION, 1, 150)
    assert cart.quantity_of(1) == MAX_LINE_QUANTITY


def test_insertion_order_survives_updates(store):
    store.add(SESSION, 3, 1)
    store.add(SESSION, 1, 1)
    store.add(SESSION, 2, 1)
    store.set_quantity(SESSION, 3, 7)
    cart = store.add(SESSION, 1, 2)
    assert cart.product_ids() == [3, 1, 2]


def test_readding_after_removal_goes_to_the_end(store):
    store.add(SESSION, 1, 1)
    store.add(SESSION, 2, 1)
    store.remove(SESSION, 1)
    cart = store.add(SESSION, 1, 1)
    assert cart.product_ids() == [2, 1]


def test_remove_absent_product_is_noop(store):
    store.add(SESSION, 1, 1)
    cart = store.remove(SESSION, 42)
    assert cart.product_ids() == [1]


def test_clear_empties_cart(store):
    store.add(SESSION, 1, 1)
    store.add(SESSION, 2, 1)
    assert len(store.clear(SESSION)) == 0
    assert len(store.get(SESSION)) == 0


def test_sessions_are_isolated(store):
    store.add("session-a", 1, 2)
    store.add("session-b", 1, 5)
    assert store.get("session-a").quantity_of(1) == 2
    assert store.get("session-b").quantity_of(1) == 5


def test_end_session_forgets_cart(store):
    store.add(SESSION, 1, 2)
    store.end_session(SESSION)
    assert len(store.storage) == 0
    assert len(store.get(SESSION)) == 0


def test_returned_snapshot_is_not_affected_by_later_changes(store):
    before = store.add(SESSION, 1, 1)
    store.add(SESSION, 1, 1)
    assert before.quantity_of(1) == 1


def test_concurrent_adds_are_not_lost(store):
    threads_count = 8
    adds_per_thread = 10
    barrier = threading.Barrier(threads_count)

    def worker():
        barrier.wait()
        for _ in range(adds_per_thread):
            store.add(SESSION, 1, 1)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get(SESSION).quantity_of(1) == threads_count * adds_per_thread


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_reads_do_not_register_sessions():
    storage = InMemoryCartStorage()
    store = CartStore(storage)
    for i in range(1000):
        store.get(f"anon-{i}")
        store.clear(f"anon-{i}")
    assert len(storage) == 0


def test_idle_sessions_expire():
    clock = FakeClock()
    storage = InMemoryCartStorage(idle_seconds=600, sweep_interval=60, clock=clock)
    store = CartStore(storage)
    store.add("idle", 1, 2)
    store.add("busy", 1, 3)

    clock.now += 500
    store.add("busy", 1, 1)
    clock.now += 200
    store.get("busy")

    assert len(storage) == 1
    assert len(store.get("idle")) == 0
    assert store.get("busy").quantity_of(1) == 4


def test_sweep_runs_at_most_once_per_interval():
    clock = FakeClock()
    storage = InMemoryCartStorage(idle_seconds=10, sweep_interval=60, clock=clock)
    store = CartStore(storage)
    store.add("idle", 1, 1)

    clock.now += 30
    store.get("other")
    assert len(storage) == 1

    clock.now += 31
    store.get("other")
    assert len(storage) == 0
