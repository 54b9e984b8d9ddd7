def seed_categories(fake_supabase):
    fake_supabase.seed(
        "material_categories",
        {"id": "1", "main_category": "Boden", "sub_category": "Fliesen", "label": "Fliesen"},
        {"id": "2", "main_category": "Wand", "sub_category": "Putz", "label": "Putz"},
        {"id": "3", "main_category": "Boden", "sub_category": "Parkett", "label": "Parkett"},
    )


def test_list_material_categories(client, fake_supabase):
    seed_categories(fake_supabase)
    body = client.get("/api/material-categories").json()
    assert [c["id"] for c in body] == ["1", "3", "2"]
    filtered = client.get("/api/material-categories", params={"main_category": "Wand"}).json()
    assert [c["label"] for c in filtered] == ["Putz"]


def test_material_category_tree(client, fake_supabase):
    seed_categories(fake_supabase)
    tree = client.get("/api/material-categories/tree").json()
    assert [g["main_category"] for g in tree] == ["Boden", "Wand"]
    assert [c["label"] for c in tree[0]["categories"]] == ["Fliesen", "Parkett"]


def test_get_material_category(client, fake_supabase):
    seed_categories(fake_supabase)
    assert client.get("/api/material-categories/2").json()["label"] == "Putz"
    assert client.get("/api/material-categories/99").status_code == 404


def test_wfs_layers(client, fake_supabase):
    fake_supabase.seed(
        "wfs_layers",
        {"id": 1, "name": "flurstuecke", "titel": "Flurstücke", "wfs_id": "s1",
         "inspire_konformitaet": "konform", "wfs_streams": {"bundesland_oder_region": "Bayern"}},
        {"id": 2, "name": "gebaeude", "titel": None, "wfs_id": "s2", "wfs_streams": None},
    )
    layers = client.get("/api/wfs-layers").json()
    assert layers[0]["title"] == "Flurstücke"
    assert layers[0]["inspire_konform"] is True
    assert layers[0]["bundesland_oder_region"] == "Bayern"
    assert layers[1]["title"] == "gebaeude"
    assert [l["id"] for l in client.get("/api/wfs-layers", params={"stream_id": "s2"}).json()] == ["2"]
    assert [l["id"] for l in client.get("/api/wfs-layers", params={"search": "flur"}).json()] == ["1"]
