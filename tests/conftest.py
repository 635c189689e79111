import pytest

from capture_website import engine


class FakeEngine:
    def __init__(self, data=b"\x89PNG\r\n\x1a\nfake"):
        self.data = data
        self.calls = []

    async def capture_buffer(self, input_value, options):
        self.calls.append(("buffer", input_value, None, options))
        return self.data

    async def capture_file(self, input_value, path, options):
        self.calls.append(("file", input_value, path, options))
        path.write_bytes(self.data)

    async def list_devices(self):
        return ["Pixel 5", "iPhone 12"]


@pytest.fixture
def fake_engine(monkeypatch):
    fake = FakeEngine()
    monkeypatch.setattr(engine, "capture_buffer", fake.capture_buffer)
    monkeypatch.setattr(engine, "capture_file", fake.capture_file)
    monkeypatch.setattr(engine, "list_devices", fake.list_devices)
    return fake
