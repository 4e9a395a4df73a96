import pytest

from exceptions import ExportError, MonitoringError, UnknownLayerError
from monitoring.registry import Layer


def test_hierarchy():
    assert issubclass(UnknownLayerError, MonitoringError)
    assert issubclass(UnknownLayerError, ValueError)
    assert issubclass(ExportError, MonitoringError)


def test_unknown_layer_message_lists_layers():
    with pytest.raises(UnknownLayerError) as exc_info:
        Layer.parse("gateway")

    message = str(exc_info.value)
    assert "gateway" in message
    assert "SERVICE" in message and "REPOSITORY" in message
