import os
import unittest
from uuid import UUID

from sqlmodel import select

from support import APITestCase
from lifevault.models.Asset import Asset, Document
from lifevault.models.Nominee import NomineeLink


class AssetTestCase(APITestCase):

    def setUp(self):
        super().setUp()
        self.owner_token, self.owner_id = self.register_and_login("owner@example.com", "owner")
        self.other_token, self.other_id = self.register_and_login("other@example.com", "owner")
        self.nominee_token, self.nominee_user_id = self.register_and_login("nominee@example.com", "nominee")
        self.admin_token, _ = self.register_and_login("admin@example.com", "admin")
        self.nominee_id = self.nominee_id_for(self.owner_token, self.nominee_user_id)


class TestScenarioA(AssetTestCase):

    def test_share_asset_with_nominee(self):
        response = self.client.post(
            "/assets", json={"title": "Policy", "category": "Legal"}, headers=self.auth(self.owner_token)
        )
        self.assertEqual(response.status_code, 201)
        asset_id = response.json()["data"]["asset"]["id"]

        self.assertEqual(self.upload(self.owner_token, asset_id).status_code, 201)

        response = self.client.get(f"/assets/{asset_id}", headers=self.auth(self.nominee_token))
        self.assertEqual(response.status_code, 404)

        self.assertEqual(self.link(self.owner_token, asset_id, self.nominee_id).status_code, 201)

        response = self.client.get(f"/assets/{asset_id}", headers=self.auth(self.nominee_token))
        self.assertEqual(response.status_code, 200)
        asset = response.json()["data"]["asset"]
        self.assertEqual(asset["id"], asset_id)
        self.assertEqual(len(asset["documents"]), 1)
        self.assertEqual(asset["documents"][0]["file_size"], 10240)


class TestOwnershipGate(AssetTestCase):

    def test_stranger_gets_404_on_reads_and_403_on_writes(self):
        asset_id = self.create_asset(self.owner_token)
        self.upload(self.owner_token, asset_id)

        for reader, token in (("other owner", self.other_token), ("unlinked nominee", self.nominee_token)):
            headers = self.auth(token)
            with self.subTest(reader=reader):
                self.assertEqual(self.client.get(f"/assets/{asset_id}", headers=headers).status_code, 404)
                self.assertEqual(self.client.get(f"/assets/{asset_id}/documents", headers=headers).status_code, 404)
                self.assertEqual(self.client.patch(f"/assets/{asset_id}", json={"title": "Mine"}, headers=headers).status_code, 403)
                self.assertEqual(self.client.delete(f"/assets/{asset_id}", headers=headers).status_code, 403)
                self.assertEqual(self.upload(token, asset_id).status_code, 403)

        response = self.client.patch(f"/assets/{asset_id}", json={"title": "Mine"}, headers=self.auth(self.other_token))
        self.assertEqual(response.json(), {"success": False, "error": "Unauthorized: You can only modify your own assets"})

    def test_hidden_and_missing_look_alike_to_readers(self):
        asset_id = self.create_asset(self.owner_token)
        missing_id = "7b0c2d4e-0000-4000-8000-000000000000"
        headers = self.auth(self.other_token)
        for path in ("/assets/{}", "/assets/{}/documents", "/nominees/asset/{}"):
            with self.subTest(path=path):
                hidden = self.client.get(path.format(asset_id), headers=headers)
                missing = self.client.get(path.format(missing_id), headers=headers)
                self.assertEqual(hidden.status_code, 404)
                self.assertEqual(missing.status_code, 404)
                self.assertEqual(hidden.json(), missing.json())
                self.assertEqual(hidden.json()["error"], "Asset not found or access denied")

    def test_missing_asset_on_writes(self):
        missing_id = "7b0c2d4e-0000-4000-8000-000000000000"
        response = self.client.patch(f"/assets/{missing_id}", json={"title": "X"}, headers=self.auth(self.other_token))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Asset not found")

    def test_nominee_cannot_create_assets(self):
        response = self.client.post("/assets", json={"title": "X", "category": "Other"}, headers=self.auth(self.nominee_token))
        self.assertEqual(response.status_code, 403)

    def test_admin_reads_but_cannot_write(self):
        asset_id = self.create_asset(self.owner_token)
        headers = self.auth(self.admin_token)
        self.assertEqual(self.client.get(f"/assets/{asset_id}", headers=headers).status_code, 200)
        self.assertEqual(self.client.patch(f"/assets/{asset_id}", json={"title": "Admin"}, headers=headers).status_code, 403)
        self.assertEqual(self.client.delete(f"/assets/{asset_id}", headers=headers).status_code, 403)


class TestLinkedNomineeAccess(AssetTestCase):

    def setUp(self):
        super().setUp()
        self.asset_id = self.create_asset(self.owner_token)
        self.upload(self.owner_token, self.asset_id)
        response = self.link(self.owner_token, self.asset_id, self.nominee_id)
        self.link_id = response.json()["data"]["id"]

    def test_link_grants_read_not_write(self):
        headers = self.auth(self.nominee_token)
        self.assertEqual(self.client.get(f"/assets/{self.asset_id}", headers=headers).status_code, 200)

        documents = self.client.get(f"/assets/{self.asset_id}/documents", headers=headers)
        self.assertEqual(documents.status_code, 200)
        document_id = documents.json()["data"]["documents"][0]["id"]
        self.assertEqual(self.client.get(f"/documents/{document_id}/download", headers=headers).status_code, 200)

        self.assertEqual(self.client.patch(f"/assets/{self.asset_id}", json={"category": "Other"}, headers=headers).status_code, 403)
        self.assertEqual(self.client.delete(f"/assets/{self.asset_id}", headers=headers).status_code, 403)
        self.assertEqual(self.upload(self.nominee_token, self.asset_id).status_code, 403)
        self.assertEqual(self.client.delete(f"/documents/{document_id}", headers=headers).status_code, 403)

    def test_unlink_revokes_immediately(self):
        headers = self.auth(self.nominee_token)
        self.assertEqual(self.client.get(f"/assets/{self.asset_id}", headers=headers).status_code, 200)

        response = self.client.delete(f"/nominees/link/{self.link_id}", headers=self.auth(self.owner_token))
        self.assertEqual(response.status_code, 200)

        self.assertEqual(self.client.get(f"/assets/{self.asset_id}", headers=headers).status_code, 404)
        self.assertEqual(self.client.get(f"/assets/{self.asset_id}/documents", headers=headers).status_code, 404)
        listing = self.client.get("/assets", headers=headers).json()["data"]["assets"]
        self.assertEqual(listing, [])

    def test_nominee_listing_hides_links(self):
        assets = self.client.get("/assets", headers=self.auth(self.nominee_token)).json()["data"]["assets"]
        self.assertEqual([a["id"] for a in assets], [self.asset_id])
        self.assertNotIn("linked_nominees", assets[0])

        owner_view = self.client.get(f"/assets/{self.asset_id}", headers=self.auth(self.owner_token)).json()["data"]["asset"]
        self.assertEqual(len(owner_view["linked_nominees"]), 1)
        self.assertEqual(owner_view["linked_nominees"][0]["nominee"]["user"]["email"], "nominee@example.com")


class TestAssetCollection(AssetTestCase):

    def test_listing_is_scoped_by_role(self):
        mine = [self.create_asset(self.owner_token, title=f"Mine {i}") for i in range(2)]
        theirs = self.create_asset(self.other_token, title="Theirs")

        owner_ids = [a["id"] for a in self.client.get("/assets", headers=self.auth(self.owner_token)).json()["data"]["assets"]]
        self.assertEqual(sorted(owner_ids), sorted(mine))

        admin_assets = self.client.get("/assets", headers=self.auth(self.admin_token)).json()["data"]["assets"]
        self.assertEqual(sorted(a["id"] for a in admin_assets), sorted(mine + [theirs]))
        self.assertTrue(all("linked_nominees" in a for a in admin_assets))

        self.assertEqual(self.client.get("/assets", headers=self.auth(self.nominee_token)).json()["data"]["assets"], [])

    def test_listing_includes_owner(self):
        self.create_asset(self.owner_token)
        asset = self.client.get("/assets", headers=self.auth(self.owner_token)).json()["data"]["assets"][0]
        self.assertEqual(asset["owner"], {"id": self.owner_id, "email": "owner@example.com"})

    def test_update(self):
        asset_id = self.create_asset(self.owner_token)
        before = self.client.get(f"/assets/{asset_id}", headers=self.auth(self.owner_token)).json()["data"]["asset"]

        response = self.client.patch(
            f"/assets/{asset_id}", json={"title": "Will", "category": "Personal"}, headers=self.auth(self.owner_token)
        )
        self.assertEqual(response.status_code, 200)
        asset = response.json()["data"]["asset"]
        self.assertEqual((asset["title"], asset["category"]), ("Will", "Personal"))
        self.assertGreaterEqual(asset["updated_at"], before["updated_at"])

    def test_update_validation(self):
        asset_id = self.create_asset(self.owner_token)
        headers = self.auth(self.owner_token)
        for body in ({}, {"title": ""}, {"title": "x" * 256}, {"category": "Crypto"}):
            with self.subTest(body=body):
                self.assertEqual(self.client.patch(f"/assets/{asset_id}", json=body, headers=headers).status_code, 400)

    def test_create_validation(self):
        headers = self.auth(self.owner_token)
        for body in ({"title": "", "category": "Legal"}, {"title": "x" * 256, "category": "Legal"}, {"title": "Ok"}):
            with self.subTest(body=body):
                self.assertEqual(self.client.post("/assets", json=body, headers=headers).status_code, 400)

    def test_unknown_asset(self):
        response = self.client.get("/assets/7b0c2d4e-0000-4000-8000-000000000000", headers=self.auth(self.owner_token))
        self.assertEqual(response.status_code, 404)
        response = self.client.get("/assets/not-a-uuid", headers=self.auth(self.owner_token))
        self.assertEqual(response.status_code, 400)

    def test_delete_cascades(self):
        asset_id = self.create_asset(self.owner_token)
        document = self.upload(self.owner_token, asset_id).json()["data"]["document"]
        self.link(self.owner_token, asset_id, self.nominee_id)
        stored = os.path.join(self.settings.STORAGE_DIR, document["file_path"])
        self.assertTrue(os.path.exists(stored))

        response = self.client.delete(f"/assets/{asset_id}", headers=self.auth(self.owner_token))
        self.assertEqual(response.status_code, 200)

        with self.db() as session:
            self.assertIsNone(session.get(Asset, UUID(asset_id)))
            self.assertEqual(session.exec(select(Document)).all(), [])
            self.assertEqual(session.exec(select(NomineeLink)).all(), [])
        self.assertFalse(os.path.exists(stored))

    def test_stats_are_admin_only(self):
        asset_id = self.create_asset(self.owner_token, category="Medical")
        self.upload(self.owner_token, asset_id, content=b"a" * 300)

        self.assertEqual(self.client.get("/assets/stats", headers=self.auth(self.owner_token)).status_code, 403)

        stats = self.client.get("/assets/stats", headers=self.auth(self.admin_token)).json()["data"]
        self.assertEqual(stats["totalAssets"], 1)
        self.assertEqual(stats["totalDocuments"], 1)
        self.assertEqual(stats["storageUsed"], 300)
        self.assertIn({"category": "Medical", "count": 1}, stats["assetsByCategory"])
        self.assertIn({"category": "Legal", "count": 0}, stats["assetsByCategory"])


if __name__ == "__main__":
    unittest.main()
