import importlib.util


def test_core_main_callable():
    from BlinkEndurance.core.app import main
    assert callable(main)


def test_import_main_window():
    from BlinkEndurance.ui.main_window import MainWindow  # noqa: F401


def test_landmark_source_discoverable():
    spec = importlib.util.find_spec("BlinkEndurance.tracking.landmarks")
    assert spec is not None, "tracking.landmarks module should be discoverable"
