"""Download the example datasets into data/.

Usage:
    python fetch_data.py cifar10
    python fetch_data.py nutrition https://example.org/path/to/nndb_flat.csv
"""
import os
import sys
import tarfile
import time

import requests

from pcalab.constants import DATA_DIR, DATASETS
from pcalab.data_loader import load_cifar_batch

CIFAR_BATCH = "cifar-10-batches-py/data_batch_1"


def download(url, out_path):
    """Stream ``url`` to ``out_path``; nothing is left behind if the transfer fails."""
    print(f"  Fetching {url} ...")
    part_path = out_path + ".part"
    size = 0
    try:
        resp = requests.get(url, stream=True, timeout=300)
        resp.raise_for_status()
        with open(part_path, "wb") as f:
            for chunk in resp.iter_content(chunk_size=1 << 20):
                f.write(chunk)
                size += len(chunk)
    except BaseException:
        if os.path.exists(part_path):
            os.remove(part_path)
        raise
    os.replace(part_path, out_path)
    print(f"  -> {size / 1e6:,.1f} MB written to {out_path}")
    return out_path


def fetch_cifar(url):
    """Download the CIFAR-10 python tarball and convert its first batch to CSV."""
    tar_path = download(url, os.path.join(DATA_DIR, "cifar-10-python.tar.gz"))
    with tarfile.open(tar_path, "r:gz") as tar:
        member = tar.getmember(CIFAR_BATCH)
        tar.extractall(DATA_DIR, members=[member], filter="data")
    frame = load_cifar_batch(os.path.join(DATA_DIR, CIFAR_BATCH))
    out_path = os.path.join(DATA_DIR, DATASETS["cifar10"]["file"])
    frame.to_csv(out_path, index=False)
    print(f"  -> {len(frame):,} images, {frame.shape[1] - 2:,} pixel columns")
    return out_path


def main(argv):
    if not argv or argv[0] not in DATASETS:
        print(__doc__)
        return 1
    name = argv[0]
    url = argv[1] if len(argv) > 1 else DATASETS[name]["url"]
    if url is None:
        print(f"No download URL configured for {name!r}; pass one on the command line.")
        return 1

    os.makedirs(DATA_DIR, exist_ok=True)
    print(f"\n[{name}]")
    start = time.time()
    if name == "cifar10":
        out_path = fetch_cifar(url)
    else:
        out_path = download(url, os.path.join(DATA_DIR, DATASETS[name]["file"]))
    print(f"\nDone in {time.time() - start:.0f}s! Data at {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
