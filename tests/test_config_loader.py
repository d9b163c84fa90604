from lan_survey.config.config_loader import ConfigLoader, SurveyConfig


def write_config(tmp_path, text):
    path = tmp_path / "survey_config.yml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_missing_file_gives_defaults(tmp_path):
    config = ConfigLoader(config_dir=str(tmp_path)).load()

    assert config == SurveyConfig()
    assert config.liveness.concurrency == 80
    assert config.naming.concurrency == 30
    assert config.snmp.community == "public"
    assert config.watch.interval == 60.0
    assert config.inventory.update_enabled
    assert config.inventory.segment_overwrite


def test_values_are_read_from_yaml(tmp_path):
    path = write_config(tmp_path, """
segments_file: segments.txt
liveness:
  timeout: 0.5
  concurrency: 120
naming:
  netbios_enabled: yes
snmp:
  community: private
discovery:
  ssdp_enabled: false
inventory:
  path: space.csv
  segment_overwrite: false
watch:
  enabled: true
  interval: 300
output:
  path: last.csv
""")

    config = ConfigLoader().load(path)

    assert config.segments_path == "segments.txt"
    assert config.liveness.timeout == 0.5
    assert config.liveness.concurrency == 120
    assert config.naming.netbios_enabled is True
    assert config.snmp.community == "private"
    assert config.discovery.ssdp_enabled is False
    assert config.discovery.mdns_services_enabled is True
    assert config.inventory.path == "space.csv"
    assert config.inventory.segment_overwrite is False
    assert config.watch.enabled is True
    assert config.watch.interval == 300.0
    assert config.output.path == "last.csv"


def test_invalid_numbers_fall_back_to_defaults(tmp_path):
    path = write_config(tmp_path, """
liveness:
  timeout: -1
  concurrency: lots
naming:
  concurrency: true
  dns_timeout: 0
probes:
  http_timeout: "3.5"
""")

    config = ConfigLoader().load(path)

    assert config.liveness.timeout == 1.0
    assert config.liveness.concurrency == 80
    assert config.naming.concurrency == 30
    assert config.naming.dns_timeout == 2.0
    assert config.probes.http_timeout == 3.5


def test_non_mapping_section_falls_back(tmp_path):
    path = write_config(tmp_path, """
probes: [ssh, smb]
snmp:
  community: ""
""")

    config = ConfigLoader().load(path)

    assert config.probes == SurveyConfig().probes
    assert config.snmp.community == "public"


def test_broken_yaml_gives_defaults(tmp_path):
    path = write_config(tmp_path, "liveness: [unclosed\n")

    assert ConfigLoader().load(path) == SurveyConfig()


def test_non_dict_document_gives_defaults(tmp_path):
    path = write_config(tmp_path, "- just\n- a list\n")

    assert ConfigLoader().load(path) == SurveyConfig()


def test_non_boolean_toggles_fall_back_to_defaults():
    config = ConfigLoader().from_dict({
        "probes": {"ssh_enabled": "false", "favicon_enabled": 0, "cert_enabled": False},
        "watch": {"enabled": "yes"},
        "inventory": {"update_enabled": "no"},
    })

    assert config.probes.ssh_enabled is True
    assert config.probes.favicon_enabled is True
    assert config.probes.cert_enabled is False
    assert config.watch.enabled is False
    assert config.inventory.update_enabled is True


def test_yaml_boolean_words_are_accepted(tmp_path):
    path = write_config(tmp_path, "probes:\n  ssh_enabled: no\n  smb_enabled: off\nwatch:\n  enabled: on\n")

    config = ConfigLoader().load(path)

    assert config.probes.ssh_enabled is False
    assert config.probes.smb_enabled is False
    assert config.watch.enabled is True


def test_shipped_default_file_loads():
    config = ConfigLoader().load()

    assert config.liveness.timeout == 1.0
    assert config.segments_path is None
