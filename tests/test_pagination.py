import dataclasses

import pytest

from dbkit import OrderConfig, PaginationConfig, new_order_config, new_pagination_config
from tests.models import UserFields as F


def test_defaults():
    config = PaginationConfig()
    assert config.limit is None
    assert config.offset is None
    assert config.orders == []


def test_builder_chains_on_the_same_instance():
    config = new_pagination_config()
    assert config.with_limit(10).with_offset(20) is config
    assert (config.limit, config.offset) == (10, 20)


def test_orders_keep_append_order():
    first, second = new_order_config(F.age, desc=True), OrderConfig(F.id)
    config = PaginationConfig().append_order(first).append_order(second)
    assert config.orders == [first, second]
    assert config.orders[1].desc is False


def test_orders_view_is_a_copy():
    config = PaginationConfig().append_order(OrderConfig(F.id))
    config.orders.clear()
    assert len(config.orders) == 1


def test_order_config_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        OrderConfig(F.id).desc = True
