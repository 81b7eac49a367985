import threading
import time


class SharedState:
    """
    Singleton class to share state between the main processing loop
    and the FastAPI web server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.frame_lock = threading.Lock()
                    cls._instance.clear()
        return cls._instance

    def clear(self):
        """Drop everything attached to the state (used on shutdown and in tests)."""
        self.frame = None
        self.raw_frame = None
        self.stage = None
        self.producer = None
        self.system_stats = {
            "start_time": time.time(),
            "last_frame_ts": None,
            "frames": 0,
            "samples": 0,
        }

    def set_frame(self, frame, raw=None):
        """Update the current annotated video frame and the raw frame behind it."""
        with self.frame_lock:
            if frame is not None:
                self.frame = frame.copy()
                self.raw_frame = raw.copy() if raw is not None else self.frame
                self.system_stats["last_frame_ts"] = time.time()

    def get_frame(self):
        """Get the current video frame."""
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def get_raw_frame(self):
        """Get the latest frame without overlays, for colour calibration."""
        with self.frame_lock:
            if self.raw_frame is None:
                return None
            return self.raw_frame.copy()

    def attach(self, stage, producer=None):
        """Attach the event stage and the sample producer the routes control."""
        self.stage = stage
        self.producer = producer

    def update_system_stats(self, stats):
        self.system_stats.update(stats)

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        return dict(self.system_stats)


# Global instance
state = SharedState()
