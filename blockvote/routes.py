# blockvote/routes.py

# JSON API over the election, voting and authentication services.
# Services are looked up on the current app so each app instance has its own store.

import logging
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import (
    get_jwt_identity, jwt_required, set_access_cookies, unset_jwt_cookies, verify_jwt_in_request,
)
from sqlalchemy import text

from blockvote import db, limiter
from blockvote.authentication.rbac import Permission, require_permission
from blockvote.errors import AuthenticationError, BlockVoteError, ValidationError
from blockvote.security.token_manager import TokenManager

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)
token_manager = TokenManager()


def services():
    return current_app.extensions['blockvote']


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _current_user():
    user = services().auth.get_user(get_jwt_identity())
    if user is None:
        raise AuthenticationError("User no longer exists")
    return user


def _election_payload(election, viewer_id=None):
    payload = election.to_dict()
    payload['status'] = services().elections.status_of(election).value
    payload['voteCount'] = services().repository.count_votes(election_id=election.id)
    if viewer_id is not None:
        payload['hasVoted'] = services().votes.has_voted(viewer_id, election.id)
    return payload


@api.app_errorhandler(BlockVoteError)
def handle_blockvote_error(error):
    if error.status_code >= 500:
        logger.error("Request failed: %s", error.message)
    return jsonify(error.to_dict()), error.status_code


# --- authentication ---

@api.route('/auth/register', methods=['POST'])
@limiter.limit("20/hour")
def register():
    data = _json_body()
    user = services().auth.register(
        data.get('name'),
        data.get('email'),
        data.get('password'),
        data.get('confirmPassword'),
    )
    token = token_manager.generate_token(user)
    resp = jsonify({'user': user.to_public_dict(), 'access_token': token})
    set_access_cookies(resp, token)
    return resp, 201


@api.route('/auth/login', methods=['POST'])
@limiter.limit("30/minute")
def login():
    data = _json_body()
    user = services().auth.login(data.get('email'), data.get('password'))
    token = token_manager.generate_token(user)
    resp = jsonify({'user': user.to_public_dict(), 'access_token': token})
    set_access_cookies(resp, token)
    return resp


@api.route('/auth/wallet', methods=['POST'])
def wallet_login():
    data = request.get_json(silent=True) or {}
    user = services().auth.login_with_wallet(data.get('walletAddress'), data.get('signature'), data.get('message'))
    token = token_manager.generate_token(user)
    resp = jsonify({'user': user.to_public_dict(), 'access_token': token})
    set_access_cookies(resp, token)
    return resp


@api.route('/auth/logout', methods=['POST'])
def logout():
    resp = jsonify({'message': 'Logged out'})
    unset_jwt_cookies(resp)
    return resp


@api.route('/auth/me')
@jwt_required()
def me():
    return jsonify({'user': _current_user().to_public_dict()})


# --- elections ---

@api.route('/elections', methods=['GET'])
def list_elections():
    verify_jwt_in_request(optional=True)
    viewer_id = get_jwt_identity()
    elections = services().elections.list_elections(status=request.args.get('status'))
    return jsonify({'elections': [_election_payload(e, viewer_id) for e in elections]})


@api.route('/elections', methods=['POST'])
@require_permission(Permission.MANAGE_ELECTIONS)
def create_election():
    data = _json_body()
    election = services().elections.create_election(
        title=data.get('title'),
        description=data.get('description'),
        candidates=data.get('candidates', []),
        start_date=data.get('startDate'),
        end_date=data.get('endDate'),
        created_by=get_jwt_identity(),
    )
    return jsonify({'election': _election_payload(election)}), 201


@api.route('/elections/<election_id>', methods=['GET'])
def get_election(election_id):
    verify_jwt_in_request(optional=True)
    election = services().elections.get_election(election_id)
    return jsonify({'election': _election_payload(election, get_jwt_identity())})


@api.route('/elections/<election_id>', methods=['DELETE'])
@require_permission(Permission.MANAGE_ELECTIONS)
def delete_election(election_id):
    services().elections.delete_election(election_id, actor_id=get_jwt_identity())
    return jsonify({'message': 'Election deleted'})


@api.route('/elections/<election_id>/vote', methods=['POST'])
@require_permission(Permission.VOTE)
@limiter.limit("60/hour")
def cast_vote(election_id):
    data = _json_body()
    voter = _current_user()
    vote, receipt = services().votes.cast_vote(voter.id, election_id, data.get('candidate'))
    return jsonify({
        'message': 'Vote cast successfully',
        'vote': vote.to_dict(),
        'receipt': receipt,
    }), 201


@api.route('/elections/<election_id>/results', methods=['GET'])
@require_permission(Permission.VIEW_RESULTS)
def election_results(election_id):
    outcome = services().elections.get_results(election_id)
    body = outcome['results'].to_dict()
    body['status'] = outcome['status'].value
    body['winner'] = outcome['winner']
    body['election'] = outcome['election'].to_dict()
    return jsonify(body)


# --- voter history and receipts ---

@api.route('/me/votes')
@require_permission(Permission.VIEW_OWN_HISTORY)
def my_votes():
    history = services().votes.votes_for_voter(get_jwt_identity())
    return jsonify({'votes': [dict(vote.to_dict(), election=election.to_dict()) for vote, election in history]})


@api.route('/receipts/verify', methods=['POST'])
def verify_receipt():
    data = _json_body()
    receipt = data.get('receipt')
    if not isinstance(receipt, str) or not receipt:
        raise ValidationError("receipt is required")
    return jsonify(services().votes.verify_receipt(receipt))


@api.route('/votes/<transaction_hash>')
def lookup_vote(transaction_hash):
    vote = services().votes.find_vote(transaction_hash)
    # the voter id stays private
    return jsonify({
        'electionId': vote.election_id,
        'candidate': vote.candidate,
        'timestamp': vote.timestamp.isoformat() if vote.timestamp else None,
        'transactionHash': vote.transaction_hash,
    })


# --- administration ---

@api.route('/admin/dashboard')
@require_permission(Permission.MANAGE_ELECTIONS)
def admin_dashboard():
    return jsonify(services().elections.dashboard_summary())


@api.route('/admin/users')
@require_permission(Permission.MANAGE_USERS)
def admin_users():
    users = services().auth.list_users(role=request.args.get('role'))
    return jsonify({'users': [dict(user.to_public_dict(), voteCount=count) for user, count in users]})


@api.route('/health')
def health():
    detail = {'storage': current_app.config['STORAGE_BACKEND']}
    if current_app.config['STORAGE_BACKEND'] == 'sql':
        try:
            db.session.execute(text('SELECT 1'))
            detail['db'] = {'ok': True}
        except Exception as e:
            logger.error("Health check database probe failed: %s", e)
            detail['db'] = {'ok': False, 'error': str(e)}
    detail['overall_ok'] = detail.get('db', {'ok': True})['ok']
    return jsonify(detail), 200 if detail['overall_ok'] else 503
