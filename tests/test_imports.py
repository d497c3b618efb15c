import importlib

MODULES = [
    'sitemonitor.db.engine',
    'sitemonitor.db.models',
    'sitemonitor.repository.crawl_runs',
    'sitemonitor.services.crawl_driver',
    'sitemonitor.services.resumable_crawl_service',
    'sitemonitor.container',
    'sitemonitor.api.server',
    'sitemonitor.cli',
]

def test_imports():
    for m in MODULES:
        importlib.import_module(m)
