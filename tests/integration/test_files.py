def _file_payload(pet_id, path="/objects/uploads/abc", **overrides):
    payload = {
        "petId": pet_id,
        "fileName": "lab-results.pdf",
        "fileType": "application/pdf",
        "fileSize": 2048,
        "filePath": path,
        "category": "medical",
    }
    payload.update(overrides)
    return payload


def test_create_and_list_files(client, login_as, sample_data, upload):
    login_as(sample_data["member"])
    rv = client.post("/api/pet-files", json=_file_payload(sample_data["pet"], upload()))
    assert rv.status_code == 201
    body = rv.get_json()
    assert body["uploaderId"] == sample_data["member"]
    assert body["fileSize"] == 2048

    files = client.get(f"/api/pets/{sample_data['pet']}/files").get_json()
    assert [f["id"] for f in files] == [body["id"]]


def test_file_path_from_upload_url_is_normalised(client, login_as, sample_data, upload):
    login_as(sample_data["member"])
    url = upload()
    rv = client.post(
        "/api/pet-files",
        json=_file_payload(sample_data["pet"], path=f"https://cdn.paws.io{url}?sig=1"),
    )
    assert rv.status_code == 201
    assert rv.get_json()["filePath"] == url


def test_create_file_validation(client, login_as, sample_data):
    login_as(sample_data["member"])
    assert client.post("/api/pet-files", json=_file_payload("ghost")).status_code == 404
    rv = client.post("/api/pet-files", json=_file_payload(sample_data["pet"], category="misc"))
    assert rv.status_code == 400
    rv = client.post("/api/pet-files", json=_file_payload(sample_data["pet"], path="/etc/passwd"))
    assert rv.status_code == 400
    rv = client.post("/api/pet-files", json=_file_payload(sample_data["pet"], fileSize=-1))
    assert rv.status_code == 400


def test_delete_file(client, login_as, sample_data, upload):
    login_as(sample_data["member"])
    file_id = client.post("/api/pet-files", json=_file_payload(sample_data["pet"], upload())).get_json()["id"]

    login_as(sample_data["outsider"])
    assert client.delete(f"/api/pet-files/{file_id}").status_code == 403

    login_as(sample_data["admin"])
    assert client.get(f"/api/pet-files/{file_id}").status_code == 200
    assert client.delete(f"/api/pet-files/{file_id}").status_code == 204
    assert client.get(f"/api/pet-files/{file_id}").status_code == 404
