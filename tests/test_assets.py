import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from PIL import Image

from creatortank.assets import classify_asset, import_asset_file, remove_asset
from creatortank.db import open_store


class AssetImportTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.root = Path(self.temp_dir.name)
        self.store = open_store(str(self.root / "data"))
        self.addCleanup(self.store.close)
        project_id = self.store.create_project("Show")
        self.idea_id = self.store.create_idea(project_id, "Pilot")
        self.source_dir = self.root / "incoming"
        self.source_dir.mkdir()

    def test_classify_asset_by_extension(self):
        self.assertEqual(classify_asset("cover.PNG"), "image")
        self.assertEqual(classify_asset("clip.webp"), "image")
        self.assertEqual(classify_asset("notes.txt"), "file")
        self.assertEqual(classify_asset("no_extension"), "file")

    def test_text_file_is_copied_as_file_asset(self):
        source = self.source_dir / "notes.txt"
        source.write_text("shot list", encoding="utf-8")

        result = import_asset_file(self.store, self.idea_id, str(source))

        expected = os.path.join(self.store.assets_dir, str(self.idea_id), "notes.txt")
        self.assertEqual(result["type"], "file")
        self.assertEqual(result["path"], expected)
        self.assertNotIn("width", result)
        self.assertEqual(Path(expected).read_text(encoding="utf-8"), "shot list")
        self.assertTrue(source.exists())

        assets = self.store.list_assets(self.idea_id)
        self.assertEqual(len(assets), 1)
        self.assertEqual(assets[0]["label"], "notes.txt")
        self.assertEqual(assets[0]["path_or_url"], expected)

    def test_image_asset_reports_dimensions(self):
        source = self.source_dir / "thumb.png"
        Image.new("RGB", (64, 32), color=(200, 10, 10)).save(source)

        result = import_asset_file(self.store, self.idea_id, str(source))

        self.assertEqual(result["type"], "image")
        self.assertEqual((result["width"], result["height"]), (64, 32))
        self.assertEqual(self.store.list_assets(self.idea_id)[0]["type"], "image")

    def test_same_name_overwrites_previous_copy(self):
        source = self.source_dir / "notes.txt"
        source.write_text("v1", encoding="utf-8")
        first = import_asset_file(self.store, self.idea_id, str(source))
        source.write_text("v2", encoding="utf-8")

        second = import_asset_file(self.store, self.idea_id, str(source))

        self.assertEqual(first["path"], second["path"])
        self.assertEqual(Path(second["path"]).read_text(encoding="utf-8"), "v2")

    def test_missing_idea_is_rejected_before_copying(self):
        source = self.source_dir / "notes.txt"
        source.write_text("x", encoding="utf-8")

        with self.assertRaises(KeyError):
            import_asset_file(self.store, 9999, str(source))
        self.assertFalse(os.path.exists(os.path.join(self.store.assets_dir, "9999")))


class AssetRemovalTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.root = Path(self.temp_dir.name)
        self.store = open_store(str(self.root / "data"))
        self.addCleanup(self.store.close)
        project_id = self.store.create_project("Show")
        self.idea_id = self.store.create_idea(project_id, "Pilot")
        source = self.root / "clip.txt"
        source.write_text("data", encoding="utf-8")
        self.asset = import_asset_file(self.store, self.idea_id, str(source))

    def test_file_asset_removes_row_and_file(self):
        removed = remove_asset(self.store, self.asset["id"], self.asset["path"], "file")

        self.assertTrue(removed)
        self.assertFalse(os.path.exists(self.asset["path"]))
        self.assertEqual(self.store.list_assets(self.idea_id), [])

    def test_file_url_is_resolved_to_local_path(self):
        remove_asset(self.store, self.asset["id"], "file://" + self.asset["path"], "file")

        self.assertFalse(os.path.exists(self.asset["path"]))

    def test_failed_file_removal_still_drops_row(self):
        with mock.patch("creatortank.assets.os.remove", side_effect=PermissionError("locked")):
            with self.assertLogs("CreatorTank", level="WARNING"):
                removed = remove_asset(self.store, self.asset["id"], self.asset["path"], "file")

        self.assertFalse(removed)
        self.assertTrue(os.path.exists(self.asset["path"]))
        self.assertEqual(self.store.list_assets(self.idea_id), [])

    def test_link_asset_never_touches_files(self):
        link_id = self.store.add_asset(self.idea_id, "link", "ref", self.asset["path"])

        with mock.patch("creatortank.assets.os.remove") as remove:
            self.assertFalse(remove_asset(self.store, link_id, self.asset["path"], "link"))

        remove.assert_not_called()
        self.assertTrue(os.path.exists(self.asset["path"]))
        self.assertEqual([a["id"] for a in self.store.list_assets(self.idea_id)], [self.asset["id"]])

    def test_files_outside_assets_folder_are_left_alone(self):
        outsider = self.root / "keep_me.txt"
        outsider.write_text("not an asset", encoding="utf-8")

        with self.assertLogs("CreatorTank", level="WARNING"):
            removed = remove_asset(self.store, self.asset["id"], str(outsider), "file")

        self.assertFalse(removed)
        self.assertTrue(outsider.exists())
        self.assertEqual(self.store.list_assets(self.idea_id), [])

    def test_traversal_out_of_assets_folder_is_refused(self):
        outsider = self.root / "data" / "database.sqlite"
        sneaky = os.path.join(self.store.assets_dir, str(self.idea_id), "..", "..", "database.sqlite")

        with self.assertLogs("CreatorTank", level="WARNING"):
            self.assertFalse(remove_asset(self.store, self.asset["id"], sneaky, "file"))

        self.assertTrue(outsider.exists())

    def test_missing_file_is_not_an_error(self):
        os.remove(self.asset["path"])

        self.assertFalse(remove_asset(self.store, self.asset["id"], self.asset["path"], "file"))
        self.assertEqual(self.store.list_assets(self.idea_id), [])


if __name__ == "__main__":
    unittest.main()
