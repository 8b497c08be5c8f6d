import logging

import pytest

from socgen.errors import NetlistFormatError
from socgen.expand import BusExpander, expand, net_name
from socgen.models import ExpandedNetlist, RawNetlist
from socgen.netlist import dump_netlist

from utils_test import bus_library, module_library, netlist


def run(text, pad_prefix='pad_'):
    expander = BusExpander(bus_library(), module_library(), pad_prefix)
    return expander.expand(netlist(text)), expander


SCENARIO_A = """
instance:
  u_cpu: {module: cpu}
  u_uart: {module: uart}
bus:
  sysbus:
    u_cpu: {port: apb_m}
    u_uart: {port: apb_s}
"""


def test_net_name():
    assert net_name('sysbus', 'addr') == 'sysbus_addr'


def test_two_instances_on_one_bus():
    expanded, expander = run(SCENARIO_A)

    assert isinstance(expanded, ExpandedNetlist)
    assert list(expanded.nets) == ['sysbus_addr', 'sysbus_wdata']
    assert expanded.nets['sysbus_addr'] == [
        {'instance': 'u_cpu', 'port': 'cpu_paddr'},
        {'instance': 'u_uart', 'port': 'uart_paddr'},
    ]
    assert expanded.nets['sysbus_wdata'] == [
        {'instance': 'u_cpu', 'port': 'cpu_pwdata'},
        {'instance': 'u_uart', 'port': 'uart_pwdata'},
    ]
    assert expander.warnings == []


def test_unmapped_signal_creates_no_net():
    expanded, _ = run(SCENARIO_A)
    # 'ready' is part of apb but no module maps it
    assert 'sysbus_ready' not in expanded.nets


def test_port_without_bus_metadata_is_skipped(caplog):
    text = """
instance:
  u_cpu: {module: cpu}
  u_timer: {module: timer}
bus:
  sysbus:
    u_timer: {port: apb_s}
    u_cpu: {port: apb_m}
"""
    with caplog.at_level(logging.WARNING):
        expanded, expander = run(text)

    assert expanded.nets == {
        'sysbus_addr': [{'instance': 'u_cpu', 'port': 'cpu_paddr'}],
        'sysbus_wdata': [{'instance': 'u_cpu', 'port': 'cpu_pwdata'}],
    }
    assert expander.warnings == ['Bus apb_s not found in module timer']
    assert 'Bus apb_s not found in module timer' in caplog.text


def test_unknown_instance_is_skipped():
    text = """
instance:
  u_cpu: {module: cpu}
  u_uart: {module: uart}
bus:
  sysbus:
    u_cpu: {port: apb_m}
    u_missing: {port: apb_s}
    u_uart: {port: apb_s}
"""
    expanded, expander = run(text)

    assert [e['instance'] for e in expanded.nets['sysbus_addr']] == ['u_cpu', 'u_uart']
    assert expander.warnings == ['Instance u_missing not found in netlist (bus sysbus)']


def test_missing_instance_section_is_fatal():
    with pytest.raises(NetlistFormatError, match='instance'):
        netlist("""
bus:
  sysbus:
    u_cpu: {port: apb_m}
""")


@pytest.mark.parametrize('section', ['net: [a, b]', 'bus: 3'])
def test_non_map_sections_are_fatal(section):
    with pytest.raises(NetlistFormatError, match='must be a map'):
        netlist('instance:\n  u_cpu: {module: cpu}\n' + section + '\n')


def test_bus_type_of_first_entry_wins():
    text = """
instance:
  u_cpu: {module: cpu}
  u_dma: {module: dma}
  u_uart: {module: uart}
bus:
  sysbus:
    u_cpu: {port: apb_m}
    u_dma: {port: ahb_m}
    u_uart: {port: apb_s}
"""
    expanded, expander = run(text)

    assert list(expanded.nets) == ['sysbus_addr', 'sysbus_wdata']
    assert [e['instance'] for e in expanded.nets['sysbus_addr']] == ['u_cpu', 'u_uart']
    assert len(expander.warnings) == 1
    assert expander.warnings[0].startswith('Bus type mismatch in bus sysbus')


def test_bus_type_follows_document_order():
    text = """
instance:
  u_cpu: {module: cpu}
  u_dma: {module: dma}
bus:
  sysbus:
    u_dma: {port: ahb_m}
    u_cpu: {port: apb_m}
"""
    expanded, _ = run(text)

    assert expanded.nets == {'sysbus_haddr': [{'instance': 'u_dma', 'port': 'dma_haddr'}]}


def test_group_without_valid_connection_creates_no_net():
    text = """
instance:
  u_ghost: {module: ghost}
  u_x: {module: nosuch}
bus:
  axibus:
    u_ghost: {port: x_m}
    u_x: {port: apb_m}
"""
    expanded, expander = run(text)

    assert expanded.nets == {}
    assert expander.warnings == [
        'Bus type axi not found in bus library',
        'Module nosuch not found in module library',
    ]


def test_groups_are_independent():
    text = """
instance:
  u_cpu: {module: cpu}
  u_uart: {module: uart}
  u_ghost: {module: ghost}
bus:
  broken:
    u_ghost: {port: x_m}
  sysbus:
    u_cpu: {port: apb_m}
    u_uart: {port: apb_s}
"""
    expanded, _ = run(text)
    assert list(expanded.nets) == ['sysbus_addr', 'sysbus_wdata']


def test_pad_prefix_added():
    text = """
instance:
  u_cpu: {module: cpu}
  u_gpio: {module: gpio}
bus:
  iobus:
    u_cpu: {port: apb_m}
    u_gpio: {port: apb}
"""
    expanded, expander = run(text)

    # gpio maps wdata to an empty port name
    assert expanded.nets['iobus_addr'] == [
        {'instance': 'u_cpu', 'port': 'cpu_paddr'},
        {'instance': 'u_gpio', 'port': 'gpio_paddr'},
    ]
    assert expanded.nets['iobus_wdata'] == [{'instance': 'u_cpu', 'port': 'cpu_pwdata'}]
    assert expander.warnings == []


def test_pad_prefix_stripped():
    text = """
instance:
  u_uart: {module: uart}
bus:
  sysbus:
    u_uart: {port: pad_apb_s}
"""
    expanded, _ = run(text)
    assert expanded.nets['sysbus_addr'] == [{'instance': 'u_uart', 'port': 'uart_paddr'}]


def test_pad_prefix_is_configurable():
    text = """
instance:
  u_gpio: {module: gpio}
bus:
  iobus:
    u_gpio: {port: apb}
"""
    expanded, expander = run(text, pad_prefix='')
    assert expanded.nets == {}
    assert expander.warnings == ['Bus apb not found in module gpio']

    expanded, _ = run(text, pad_prefix='io_')
    assert expanded.nets == {}


def test_separate_bus_section():
    text = """
instance:
  u_cpu: {module: cpu}
  u_bridge: {module: bridge}
bus:
  sysbus:
    u_cpu: {port: apb_m}
    u_bridge: {port: apb_s}
"""
    expanded, _ = run(text)
    assert expanded.nets['sysbus_addr'][-1] == {'instance': 'u_bridge', 'port': 'br_paddr'}


def test_list_form_group():
    text = """
instance:
  u_cpu: {module: cpu}
  u_uart: {module: uart}
bus:
  sysbus:
    - {instance: u_cpu, port: apb_m}
    - {instance: u_uart, port: apb_s}
"""
    expanded, _ = run(text)
    assert expanded.nets == run(SCENARIO_A)[0].nets


def test_invalid_group_body_is_skipped():
    text = """
instance:
  u_cpu: {module: cpu}
bus:
  empty:
  broken: 42
  partial:
    u_cpu: apb_m
"""
    expanded, expander = run(text)

    assert expanded.nets == {}
    assert expander.warnings == [
        'Invalid bus connection format for broken',
        'Invalid connection data for u_cpu in bus partial',
    ]


def test_prepopulated_nets_are_kept_and_merged():
    text = """
instance:
  u_cpu: {module: cpu}
  u_uart: {module: uart}
net:
  clk:
    - {instance: u_cpu, port: clk}
  sysbus_addr:
    - {instance: u_uart, port: tx}
bus:
  sysbus:
    u_cpu: {port: apb_m}
"""
    expanded, _ = run(text)

    assert list(expanded.nets) == ['clk', 'sysbus_addr', 'sysbus_wdata']
    assert expanded.nets['sysbus_addr'] == [
        {'instance': 'u_uart', 'port': 'tx'},
        {'instance': 'u_cpu', 'port': 'cpu_paddr'},
    ]


def test_prepopulated_scalar_net_is_replaced():
    text = """
instance:
  u_cpu: {module: cpu}
net:
  sysbus_addr: dangling
bus:
  sysbus:
    u_cpu: {port: apb_m}
"""
    expanded, expander = run(text)

    assert expanded.nets['sysbus_addr'] == [{'instance': 'u_cpu', 'port': 'cpu_paddr'}]
    assert expander.warnings == ['Net sysbus_addr is not a sequence, replaced by expanded bus net']


def test_input_is_left_untouched():
    raw = netlist(SCENARIO_A)
    expand(raw, bus_library(), module_library())

    assert list(raw.bus_groups) == ['sysbus']
    assert raw.nets == {}


def test_expanded_netlist_has_no_bus_section():
    expanded, _ = run(SCENARIO_A)
    assert set(expanded.to_document()) == {'instance', 'net'}
    assert 'bus:' not in dump_netlist(expanded)


def test_empty_bus_section_is_a_noop():
    raw = netlist("""
instance:
  u_cpu: {module: cpu}
net:
  clk:
    - {instance: u_cpu, port: clk}
bus: {}
""")
    expanded = expand(raw, bus_library(), module_library())

    assert expanded.instances == raw.instances
    assert expanded.nets == raw.nets


def test_reexpansion_is_a_noop():
    expanded, _ = run(SCENARIO_A)
    again = expand(expanded, bus_library(), module_library())

    assert again == expanded
    assert again is not expanded


def test_expansion_is_deterministic():
    first, _ = run(SCENARIO_A)
    second, _ = run(SCENARIO_A)
    assert dump_netlist(first) == dump_netlist(second)


def test_raw_netlist_requires_instances():
    with pytest.raises(NetlistFormatError):
        RawNetlist.from_document({'instance': {}})
    with pytest.raises(NetlistFormatError):
        RawNetlist.from_document(['instance'])
