"""Import-name to pip-name aliases, and top-level names no single package owns."""

from __future__ import annotations

# Known import-name to pip-name mappings
IMPORT_TO_PIP: dict[str, str] = {
    "attr": "attrs",
    "bs4": "beautifulsoup4",
    "cv2": "opencv-python",
    "dateutil": "python-dateutil",
    "dotenv": "python-dotenv",
    "gi": "pygobject",
    "grpc": "grpcio",
    "jose": "python-jose",
    "jwt": "PyJWT",
    "magic": "python-magic",
    "OpenSSL": "pyOpenSSL",
    "PIL": "Pillow",
    "serial": "pyserial",
    "sklearn": "scikit-learn",
    "skimage": "scikit-image",
    "usb": "pyusb",
    "win32api": "pywin32",
    "yaml": "pyyaml",
    "zmq": "pyzmq",
}


def pip_name_for(import_name: str) -> str:
    """Best guess of the distribution that provides ``import_name``."""
    return IMPORT_TO_PIP.get(import_name, import_name)


# Top-level names shared by many distributions; the bare name on the index is
# unrelated to (or a stub of) the packages that live below it
NAMESPACE_PACKAGES: frozenset[str] = frozenset({
    "azure",
    "backports",
    "google",
    "jaraco",
    "sphinxcontrib",
    "zope",
})
