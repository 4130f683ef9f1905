import unittest

from fretsight.core.events import EventEmitter, StateEventType


class TestEventEmitter(unittest.TestCase):
    def setUp(self):
        self.emitter = EventEmitter()
        self.received = []

    def listener(self, *args, **kwargs):
        self.received.append((args, kwargs))

    def test_emit(self):
        self.emitter.on(StateEventType.DEVICE_CHANGED, self.listener)
        self.emitter.emit(StateEventType.DEVICE_CHANGED, "audio", device_id="2")
        self.assertEqual(self.received, [(("audio",), {"device_id": "2"})])

    def test_duplicate_listener_registered_once(self):
        self.emitter.on(StateEventType.ERROR, self.listener)
        self.emitter.on(StateEventType.ERROR, self.listener)
        self.emitter.emit(StateEventType.ERROR)
        self.assertEqual(len(self.received), 1)

    def test_off_and_clear(self):
        self.emitter.on(StateEventType.ERROR, self.listener)
        self.emitter.off(StateEventType.ERROR, self.listener)
        self.emitter.emit(StateEventType.ERROR)
        self.emitter.on(StateEventType.ERROR, self.listener)
        self.emitter.clear()
        self.emitter.emit(StateEventType.ERROR)
        self.assertEqual(self.received, [])

    def test_failing_listener_does_not_stop_others(self):
        def broken(*args):
            raise RuntimeError("listener failed")

        self.emitter.on(StateEventType.AUDIO_CHANGED, broken)
        self.emitter.on(StateEventType.AUDIO_CHANGED, self.listener)
        self.emitter.emit(StateEventType.AUDIO_CHANGED, 1)
        self.assertEqual(len(self.received), 1)


if __name__ == "__main__":
    unittest.main()
