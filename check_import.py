import importlib

try:
    importlib.import_module('itg_portal.main')
    print('IMPORT_OK')
except Exception as exc:
    print('IMPORT_ERROR:', exc)
