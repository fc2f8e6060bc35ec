import json

import pytest

from tupgate.auth_models import (
    ModelDecodeError,
    PermissionVerifyReq,
    PermissionVerifyRsp,
    VerifyData,
)


def test_verify_data_defaults():
    data = VerifyData()
    assert data.userid == 0
    assert data.passed is True


def test_verify_data_json_form():
    assert VerifyData(userid=7, passed=False).to_json() == '{"pass":false,"userid":7}'


def test_verify_data_round_trip():
    original = VerifyData(userid=123456789012, passed=False)
    assert VerifyData.from_json(original.to_json()) == original
    assert VerifyData.from_dict(original.to_dict()) == original


def test_verify_data_requires_fields():
    with pytest.raises(ModelDecodeError):
        VerifyData.from_dict({"userid": 1})
    with pytest.raises(ModelDecodeError):
        VerifyData.from_dict({"pass": True})


def test_verify_data_rejects_wrong_types():
    with pytest.raises(ModelDecodeError):
        VerifyData.from_dict({"userid": "1", "pass": True})
    with pytest.raises(ModelDecodeError):
        VerifyData.from_dict({"userid": 1, "pass": 1})


def test_non_object_is_rejected():
    with pytest.raises(ModelDecodeError):
        VerifyData.from_json("[1, 2]")
    with pytest.raises(ModelDecodeError):
        PermissionVerifyReq.from_dict("token")


def test_invalid_json_is_rejected():
    with pytest.raises(ModelDecodeError):
        PermissionVerifyRsp.from_json("{not json")


def test_request_round_trip():
    req = PermissionVerifyReq(
        token="token",
        servant_name="Base.Gateway.FlowControlObj",
        func_name="report",
        req_param="{}",
        remote_addr="127.0.0.1",
    )
    assert PermissionVerifyReq.from_json(req.to_json()) == req


def test_request_uses_camel_case_keys():
    req = PermissionVerifyReq(token="token", servant_name="S", func_name="f")
    assert set(req.to_dict()) == {
        "token", "servantName", "funcName", "reqParam", "remoteAddr"
    }
    assert json.loads(req.to_json())["servantName"] == "S"


def test_request_optional_fields_default():
    req = PermissionVerifyReq.from_dict(
        {"token": "token", "servantName": "S", "funcName": "f"}
    )
    assert req.req_param == ""
    assert req.remote_addr == ""


def test_request_optional_wrong_type_keeps_default():
    req = PermissionVerifyReq.from_dict(
        {"token": "token", "servantName": "S", "funcName": "f", "reqParam": 5}
    )
    assert req.req_param == ""


def test_request_requires_func_name():
    with pytest.raises(ModelDecodeError):
        PermissionVerifyReq.from_dict({"token": "token", "servantName": "S"})


def test_response_round_trip():
    rsp = PermissionVerifyRsp(code=3, message="denied", data=VerifyData(42, False))
    assert PermissionVerifyRsp.from_json(rsp.to_json()) == rsp


def test_response_only_code_required():
    rsp = PermissionVerifyRsp.from_dict({"code": 1})
    assert rsp == PermissionVerifyRsp(code=1)
    assert rsp.data == VerifyData()


def test_response_missing_code_raises():
    with pytest.raises(ModelDecodeError):
        PermissionVerifyRsp.from_dict({"message": "ok"})


def test_response_nested_data_is_strict():
    with pytest.raises(ModelDecodeError):
        PermissionVerifyRsp.from_dict({"code": 0, "data": {"userid": 1}})


def test_response_nested_data_dict_form():
    rsp = PermissionVerifyRsp(code=0, data=VerifyData(userid=9, passed=True))
    assert rsp.to_dict()["data"] == {"userid": 9, "pass": True}