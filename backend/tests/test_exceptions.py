from app.core.exceptions import AppError, ResourceNotFoundError, TimetableConfigError


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_not_found_error_structure():
    err = ResourceNotFoundError("Timetable", "tt-1")
    assert err.status_code == 404
    assert err.message == "Timetable with id tt-1 not found"
    assert err.details == {"resource_type": "Timetable", "resource_id": "tt-1"}
    assert isinstance(err, AppError)


def test_config_error_structure():
    err = TimetableConfigError("Bad grid", details={"period_duration": 0})
    assert err.status_code == 422
    assert err.details == {"period_duration": 0}


def test_app_errors_render_as_message_and_details(client, admin_headers):
    response = client.post(
        "/api/timetables/generate",
        json={"timetable_id": "x", "config_id": "missing"},
        headers=admin_headers,
    )

    # Timetable lookup runs first.
    assert response.status_code == 404
    assert response.json() == {"detail": "Timetable not found"}

    created = client.post(
        "/api/timetables/",
        json={"name": "T", "term": "Term 1", "academic_year": "2026", "config_id": "missing"},
        headers=admin_headers,
    )
    assert created.status_code == 404
    assert created.json() == {
        "message": "TimetableConfig with id missing not found",
        "details": {"resource_type": "TimetableConfig", "resource_id": "missing"},
    }
