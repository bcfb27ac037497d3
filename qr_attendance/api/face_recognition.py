"""Face profile API: register, inspect, remove and compare embeddings."""
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required
from qr_attendance import db
from qr_attendance.models.user import User
from qr_attendance.services.similarity import compare_embeddings
from qr_attendance.utils.decorators import student_required
from qr_attendance.utils.helpers import success_response, error_response, current_user_id, current_policy
from qr_attendance.utils.validators import Validator

face_bp = Blueprint('face_recognition', __name__)

def _embedding_error(values):
    """First validation error for an embedding, or None."""
    dimensions = current_app.config.get('FACE_EMBEDDING_DIMENSIONS', 128)
    result = Validator.validate_embedding(values, dimensions)
    return None if result['is_valid'] else result['errors'][0]

@face_bp.route('/register', methods=['POST'])
@jwt_required()
@student_required
def register_face():
    """Store the face embedding computed on the student's device."""
    data = request.get_json(silent=True) or {}
    embedding = data.get('faceEmbedding')
    
    error = _embedding_error(embedding)
    if error:
        return error_response(error, 400)
    
    user = User.get_by_id(current_user_id())
    user.face_embedding = [float(value) for value in embedding]
    db.session.commit()
    
    current_app.logger.info('Face embedding registered for user %s', user.id)
    
    return success_response(
        data={
            'id': user.id,
            'name': user.name,
            'email': user.email,
            'has_face_embedding': True
        },
        message='Face registered successfully'
    )

@face_bp.route('/status', methods=['GET'])
@jwt_required()
def face_status():
    """Check if user has registered face."""
    user = User.get_by_id(current_user_id())
    
    return success_response(
        data={'has_face_embedding': user.has_face_embedding},
        message='Face is registered' if user.has_face_embedding else 'No face registered'
    )

@face_bp.route('/remove', methods=['DELETE'])
@jwt_required()
@student_required
def remove_face():
    """Remove face embedding."""
    user = User.get_by_id(current_user_id())
    user.face_embedding = None
    db.session.commit()
    
    return success_response(
        data={'id': user.id, 'has_face_embedding': False},
        message='Face embedding removed successfully'
    )

@face_bp.route('/verify', methods=['POST'])
@jwt_required()
def verify_face():
    """Compare a fresh embedding with the stored one, without marking attendance."""
    data = request.get_json(silent=True) or {}
    embedding = data.get('faceEmbedding')
    policy = current_policy()
    threshold = data.get('threshold', policy.admission_threshold)
    
    if not isinstance(threshold, (int, float)) or not 0 <= threshold <= 1:
        return error_response('Threshold must be between 0 and 1', 400)
    
    error = _embedding_error(embedding)
    if error:
        return error_response(error, 400)
    
    profile = User.get_by_id(current_user_id()).biometric_profile()
    if not profile:
        return error_response('No face registered. Please register your face first.', 400)
    
    similarity, is_match = compare_embeddings(profile, embedding, threshold)
    
    return success_response(
        data={
            'is_match': is_match,
            'confidence': similarity,
            'threshold': threshold
        },
        message='Face verification successful' if is_match else 'Face verification failed. Please try again.'
    )

@face_bp.route('/compare', methods=['POST'])
@jwt_required()
def compare_faces():
    """Compare two embeddings (diagnostics)."""
    data = request.get_json(silent=True) or {}
    
    for key in ('embedding1', 'embedding2'):
        error = _embedding_error(data.get(key))
        if error:
            return error_response(f'{key}: {error}', 400)
    
    similarity, is_match = compare_embeddings(
        data['embedding1'],
        data['embedding2'],
        current_policy().admission_threshold
    )
    
    return success_response(
        data={'similarity': similarity, 'is_match': is_match},
        message=f'Cosine similarity: {similarity:.4f}'
    )
