def test_subject_class_teacher_crud_with_links(client, admin_headers):
    math = client.post(
        "/api/subjects",
        json={"name": "Mathematics", "code": "math", "teaching_periods": 5},
        headers=admin_headers,
    )
    assert math.status_code == 201
    assert math.json()["code"] == "MATH"
    math_id = math.json()["id"]

    duplicate = client.post("/api/subjects", json={"name": "Maths", "code": "MATH"}, headers=admin_headers)
    assert duplicate.status_code == 409

    form = client.post(
        "/api/classes",
        json={"name": "Form 1A", "form": "1", "subject_ids": [math_id, math_id]},
        headers=admin_headers,
    )
    assert form.status_code == 201
    assert form.json()["subject_ids"] == [math_id]
    class_id = form.json()["id"]

    teacher = client.post(
        "/api/teachers",
        json={
            "first_name": "Ada",
            "last_name": "Okafor",
            "email": "ada@example.com",
            "class_ids": [class_id],
            "subject_ids": [math_id],
        },
        headers=admin_headers,
    )
    assert teacher.status_code == 201
    teacher_id = teacher.json()["id"]
    assert teacher.json()["class_ids"] == [class_id]

    listed = client.get("/api/teachers", headers=admin_headers)
    assert [item["id"] for item in listed.json()] == [teacher_id]

    updated = client.put(f"/api/teachers/{teacher_id}", json={"class_ids": []}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["class_ids"] == []
    assert updated.json()["subject_ids"] == [math_id]

    assert client.delete(f"/api/subjects/{math_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/classes/{class_id}", headers=admin_headers).json()["subject_ids"] == []
    assert client.get(f"/api/teachers/{teacher_id}", headers=admin_headers).json()["subject_ids"] == []

    assert client.delete(f"/api/teachers/{teacher_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/teachers/{teacher_id}", headers=admin_headers).status_code == 404


def test_unknown_link_ids_are_rejected(client, admin_headers):
    response = client.post(
        "/api/teachers",
        json={"first_name": "Lee", "last_name": "Moss", "class_ids": ["missing-class"]},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert "missing-class" in response.json()["detail"]


def test_registry_writes_require_editor_role(client, student_headers):
    response = client.post("/api/subjects", json={"name": "Art", "code": "ART"}, headers=student_headers)
    assert response.status_code == 403

    assert client.get("/api/subjects", headers=student_headers).status_code == 200
