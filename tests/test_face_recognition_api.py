"""Test face profile endpoints."""
import json

from qr_attendance.models.user import User

from conftest import auth_headers, unit_vector, vector_with_similarity


def test_register_and_status(client, student):
    headers = auth_headers(student)

    response = client.get('/api/face-recognition/status', headers=headers)
    assert json.loads(response.data)['data']['has_face_embedding'] is False

    response = client.post('/api/face-recognition/register',
        json={'faceEmbedding': unit_vector()}, headers=headers)
    assert response.status_code == 200

    response = client.get('/api/face-recognition/status', headers=headers)
    assert json.loads(response.data)['data']['has_face_embedding'] is True
    assert User.get_by_id(student.id).biometric_profile() == unit_vector()


def test_register_requires_128_dimensions(client, student):
    response = client.post('/api/face-recognition/register',
        json={'faceEmbedding': [0.1] * 64}, headers=auth_headers(student))
    assert response.status_code == 400

    response = client.post('/api/face-recognition/register',
        json={'faceEmbedding': ['a'] * 128}, headers=auth_headers(student))
    assert response.status_code == 400


def test_teacher_cannot_register_face(client, teacher):
    response = client.post('/api/face-recognition/register',
        json={'faceEmbedding': unit_vector()}, headers=auth_headers(teacher))
    assert response.status_code == 403


def test_remove_face(client, enrolled_student):
    response = client.delete('/api/face-recognition/remove', headers=auth_headers(enrolled_student))
    assert response.status_code == 200
    assert User.get_by_id(enrolled_student.id).biometric_profile() is None


def test_verify_against_stored_profile(client, enrolled_student, student):
    response = client.post('/api/face-recognition/verify',
        json={'faceEmbedding': vector_with_similarity(0.9)}, headers=auth_headers(enrolled_student))
    data = json.loads(response.data)['data']
    assert data['is_match'] is True
    assert data['threshold'] == 0.6

    response = client.post('/api/face-recognition/verify',
        json={'faceEmbedding': vector_with_similarity(0.9)}, headers=auth_headers(student))
    assert response.status_code == 400


def test_compare(client, student):
    response = client.post('/api/face-recognition/compare',
        json={'embedding1': unit_vector(), 'embedding2': vector_with_similarity(0.5)},
        headers=auth_headers(student))

    data = json.loads(response.data)['data']
    assert abs(data['similarity'] - 0.5) < 1e-9
    assert data['is_match'] is False


def test_register_rejects_non_finite_values(client, student):
    for bad_value in (float('nan'), float('inf')):
        embedding = unit_vector()
        embedding[0] = bad_value
        response = client.post('/api/face-recognition/register',
            data=json.dumps({'faceEmbedding': embedding}),
            content_type='application/json',
            headers=auth_headers(student))
        assert response.status_code == 400

    assert User.get_by_id(student.id).biometric_profile() is None
