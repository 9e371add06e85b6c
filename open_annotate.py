from pathlib import Path

import logging
import sys

from PyQt5.QtWidgets import QApplication

from OA_Libs.AnnotatorLib import AnnotatorMainWindow
from OA_Libs.ExportLib import load_dataset_metadata


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Optional first argument: JSON file with dataset metadata for exports
    metadata_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    metadata = load_dataset_metadata(metadata_path)

    app = QApplication(sys.argv)
    window = AnnotatorMainWindow(metadata=metadata)
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
