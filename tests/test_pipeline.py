from socgen.config import GeneratorConfig
from socgen.pipeline import GenerateManager

from utils_test import bus_library, module_library


def manager(tmp_path, **kwargs):
    config = GeneratorConfig(project_dir=tmp_path, **kwargs)
    return GenerateManager(config, bus_library(), module_library())


def test_result_collects_warnings(tmp_path):
    netlist_file = tmp_path / 'top.soc_net'
    netlist_file.write_text("""
instance:
  u_cpu: {module: cpu}
  u_timer: {module: timer}
net:
  dead: []
bus:
  sysbus:
    u_cpu: {port: apb_m}
    u_timer: {port: apb_s}
""")

    result = manager(tmp_path).generate_file(netlist_file)

    assert result.success
    assert result.output_file == tmp_path / 'output' / 'top.v'
    assert result.output_file.exists()
    assert result.warnings == [
        'Bus apb_s not found in module timer',
        'Invalid net data for dead: no connection',
    ]


def test_fatal_error_is_reported(tmp_path):
    netlist_file = tmp_path / 'top.soc_net'
    netlist_file.write_text('instance: {}\n')

    results = manager(tmp_path).generate_verilog([netlist_file, tmp_path / 'missing.soc_net'])

    assert [result.success for result in results] == [False, False]
    assert "missing or invalid 'instance' section" in results[0].error
    assert 'does not exist' in results[1].error
    assert str(results[1]).startswith('Failed to generate Verilog code for')
    assert not (tmp_path / 'output').exists()


def test_dump_expanded_netlist(tmp_path):
    netlist_file = tmp_path / 'top.soc_net'
    netlist_file.write_text('instance:\n  u_cpu: {module: cpu}\n')

    config = GeneratorConfig(project_dir=tmp_path, output_dir=tmp_path / 'rtl')
    result = GenerateManager(config, bus_library(), module_library(), dump_expanded=True).generate_file(netlist_file)

    assert result.success
    assert (tmp_path / 'rtl' / 'top.expanded.soc_net').read_text() == 'instance:\n  u_cpu:\n    module: cpu\nnet: {}\n'


def test_dump_keeps_netlist_in_output_directory(tmp_path):
    output_dir = tmp_path / 'output'
    output_dir.mkdir()
    netlist_file = output_dir / 'top.soc_net'
    source = 'instance:\n  u_cpu: {module: cpu}\nbus:\n  sysbus:\n    u_cpu: {port: apb_m}\n'
    netlist_file.write_text(source)

    result = GenerateManager(GeneratorConfig(project_dir=tmp_path), bus_library(), module_library(),
                             dump_expanded=True).generate_file(netlist_file)

    assert result.success
    assert netlist_file.read_text() == source
    assert 'sysbus_addr' in (output_dir / 'top.expanded.soc_net').read_text()
