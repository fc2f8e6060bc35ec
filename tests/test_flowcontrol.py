import json

import pytest

from tupgate.auth_models import ModelDecodeError
from tupgate.flowcontrol import FlowControl, UnknownFunctionError


class RecordingFlowControl(FlowControl):
    def __init__(self):
        self.reports = []
        self.seen_db_conf = None

    def get_gw_db(self, db_conf):
        self.seen_db_conf = dict(db_conf)
        merged = dict(db_conf)
        merged["dbhost"] = "db.example.com"
        return 0, merged

    def report(self, flow, ip):
        self.reports.append((flow, ip))
        return len(flow)


@pytest.fixture
def servant():
    return RecordingFlowControl()


def test_abstract_class_cannot_be_instantiated():
    with pytest.raises(TypeError):
        FlowControl()


def test_get_gw_db_reply_carries_config_and_ret(servant):
    reply = FlowControl.dispatch(servant, "getGWDB", {"dbConf": {"dbuser": "gateway"}})
    assert reply == {
        "dbConf": {"dbuser": "gateway", "dbhost": "db.example.com"},
        "tars_ret": 0,
    }
    assert servant.seen_db_conf == {"dbuser": "gateway"}


def test_get_gw_db_config_is_optional(servant):
    reply = FlowControl.dispatch(servant, "getGWDB", {})
    assert servant.seen_db_conf == {}
    assert reply["dbConf"] == {"dbhost": "db.example.com"}


def test_get_gw_db_ignores_malformed_optional_config(servant):
    reply = FlowControl.dispatch(servant, "getGWDB", {"dbConf": ["not", "a", "map"]})
    assert servant.seen_db_conf == {}
    assert reply["tars_ret"] == 0


def test_report_passes_flow_and_ip(servant):
    flow = {"conn": 3, "req": 7}
    reply = FlowControl.dispatch(servant, "report", {"flow": flow, "ip": "127.0.0.1"})
    assert servant.reports == [(flow, "127.0.0.1")]
    assert reply == {"tars_ret": len(flow)}


def test_dispatch_accepts_json_text(servant):
    text = json.dumps({"flow": {"a": 1}, "ip": "10.0.0.1"})
    reply = FlowControl.dispatch(servant, "report", text)
    assert reply == {"tars_ret": 1}
    assert servant.reports[0][1] == "10.0.0.1"


def test_dispatch_accepts_json_bytes(servant):
    reply = FlowControl.dispatch(servant, "getGWDB", b'{"dbConf": {"k": "v"}}')
    assert reply["dbConf"]["k"] == "v"


def test_unknown_function_raises(servant):
    with pytest.raises(UnknownFunctionError) as info:
        FlowControl.dispatch(servant, "missing", {})
    assert info.value.func_name == "missing"


def test_function_names_are_case_sensitive(servant):
    with pytest.raises(UnknownFunctionError):
        FlowControl.dispatch(servant, "Report", {"flow": {}, "ip": "x"})
    assert servant.reports == []


@pytest.mark.parametrize(
    "payload",
    [
        {"ip": "127.0.0.1"},
        {"flow": {"a": 1}},
        {"flow": {"a": "one"}, "ip": "127.0.0.1"},
        {"flow": {"a": True}, "ip": "127.0.0.1"},
        {"flow": {"a": 1}, "ip": 5},
    ],
)
def test_report_rejects_bad_requests(servant, payload):
    with pytest.raises(ModelDecodeError):
        FlowControl.dispatch(servant, "report", payload)
    assert servant.reports == []


def test_invalid_json_text_raises(servant):
    with pytest.raises(ModelDecodeError):
        FlowControl.dispatch(servant, "getGWDB", "{not json")


def test_non_object_payload_raises(servant):
    with pytest.raises(ModelDecodeError):
        FlowControl.dispatch(servant, "getGWDB", [1, 2])


def test_decode_error_is_value_error(servant):
    with pytest.raises(ValueError):
        FlowControl.dispatch(servant, "report", {})