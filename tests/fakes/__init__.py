# Fake implementations for testing

from .range_server import FakeRangeServer, ScriptedBody, OBJECT_URL

__all__ = ["FakeRangeServer", "ScriptedBody", "OBJECT_URL"]
