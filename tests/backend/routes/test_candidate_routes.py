import pytest
from pydantic import ValidationError

from backend.auth import jwt_handler
from backend.models.candidate import Candidate, Vote
from backend.models.user import User
from backend.routes.candidate_routes import CandidateRequest


def _auth_header(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_token(register) -> str:
    return register(name='Election Officer', role='admin', aadharCardNumber='100000000001')['token']


@pytest.fixture
def voter_token(register) -> str:
    return register(name='First Voter', aadharCardNumber='200000000002')['token']


@pytest.fixture
def create_candidate(client, admin_token):
    def do_create(name: str = 'Ravi Kumar', party: str = 'Green Party', age: int = 45) -> dict:
        response = client.post(
            '/candidate',
            json={'name': name, 'party': party, 'age': age},
            headers=_auth_header(admin_token),
        )
        assert response.status_code == 200, response.text
        return response.json()['candidate']

    return do_create


def test_candidate_request_strips_text_fields() -> None:
    request = CandidateRequest(name='  Ravi  ', party=' Green ', age=40)

    assert request.name == 'Ravi'
    assert request.party == 'Green'


def test_candidate_request_rejects_blank_party() -> None:
    with pytest.raises(ValidationError):
        CandidateRequest(name='Ravi', party='   ', age=40)


def test_admin_creates_candidate(create_candidate) -> None:
    candidate = create_candidate()

    assert candidate['name'] == 'Ravi Kumar'
    assert candidate['party'] == 'Green Party'
    assert candidate['voteCount'] == 0


def test_voter_cannot_create_candidate(client, voter_token) -> None:
    response = client.post(
        '/candidate',
        json={'name': 'Ravi Kumar', 'party': 'Green Party', 'age': 45},
        headers=_auth_header(voter_token),
    )

    assert response.status_code == 403
    assert response.json() == {'error': 'User does not have admin role'}


def test_create_candidate_requires_token(client) -> None:
    response = client.post('/candidate', json={'name': 'Ravi Kumar', 'party': 'Green Party', 'age': 45})

    assert response.status_code == 401


def test_admin_updates_candidate(client, admin_token, create_candidate) -> None:
    candidate = create_candidate()

    response = client.put(
        f"/candidate/{candidate['id']}",
        json={'party': 'Blue Party'},
        headers=_auth_header(admin_token),
    )

    assert response.status_code == 200
    updated = response.json()['candidate']
    assert updated['party'] == 'Blue Party'
    assert updated['name'] == 'Ravi Kumar'


def test_update_missing_candidate_returns_404(client, admin_token) -> None:
    response = client.put('/candidate/999', json={'party': 'Blue Party'}, headers=_auth_header(admin_token))

    assert response.status_code == 404
    assert response.json() == {'error': 'Candidate not found'}


def test_admin_deletes_candidate(client, db_session, admin_token, create_candidate) -> None:
    candidate = create_candidate()

    response = client.delete(f"/candidate/{candidate['id']}", headers=_auth_header(admin_token))

    assert response.status_code == 200
    assert db_session.get(Candidate, candidate['id']) is None


def test_delete_missing_candidate_returns_404(client, admin_token) -> None:
    response = client.delete('/candidate/999', headers=_auth_header(admin_token))

    assert response.status_code == 404


def test_voter_votes_once(client, db_session, voter_token, create_candidate) -> None:
    candidate = create_candidate()

    first = client.post(f"/candidate/vote/{candidate['id']}", headers=_auth_header(voter_token))
    second = client.post(f"/candidate/vote/{candidate['id']}", headers=_auth_header(voter_token))

    assert first.status_code == 200
    assert first.json() == {'message': 'Vote recorded successfully'}
    assert second.status_code == 400
    assert second.json() == {'error': 'You have already voted'}

    db_session.expire_all()
    assert db_session.get(Candidate, candidate['id']).vote_count == 1
    assert db_session.query(Vote).count() == 1
    assert db_session.query(User).filter(User.aadhar_card_number == '200000000002').one().is_voted is True


def test_admin_cannot_vote(client, admin_token, create_candidate) -> None:
    candidate = create_candidate()

    response = client.post(f"/candidate/vote/{candidate['id']}", headers=_auth_header(admin_token))

    assert response.status_code == 403
    assert response.json() == {'error': 'Admin is not allowed to vote'}


def test_vote_for_missing_candidate_returns_404(client, voter_token) -> None:
    response = client.post('/candidate/vote/999', headers=_auth_header(voter_token))

    assert response.status_code == 404
    assert response.json() == {'error': 'Candidate not found'}


def test_vote_count_is_sorted_by_votes(client, register, create_candidate) -> None:
    green = create_candidate(name='Ravi Kumar', party='Green Party')
    blue = create_candidate(name='Meera Iyer', party='Blue Party')

    for index in range(2):
        token = register(name=f'Voter {index}', aadharCardNumber=f'30000000000{index}')['token']
        client.post(f"/candidate/vote/{blue['id']}", headers=_auth_header(token))
    token = register(name='Voter 9', aadharCardNumber='300000000009')['token']
    client.post(f"/candidate/vote/{green['id']}", headers=_auth_header(token))

    response = client.get('/candidate/vote/count')

    assert response.status_code == 200
    assert response.json() == [
        {'party': 'Blue Party', 'count': 2},
        {'party': 'Green Party', 'count': 1},
    ]


def test_list_candidates_is_public(client, create_candidate) -> None:
    create_candidate(name='Ravi Kumar', party='Green Party')
    create_candidate(name='Meera Iyer', party='Blue Party')

    response = client.get('/candidate')

    assert response.status_code == 200
    assert [(item['name'], item['party']) for item in response.json()] == [
        ('Ravi Kumar', 'Green Party'),
        ('Meera Iyer', 'Blue Party'),
    ]


def test_vote_by_deleted_user_returns_404(client, create_candidate) -> None:
    candidate = create_candidate()
    token = jwt_handler.create_access_token(999)

    response = client.post(f"/candidate/vote/{candidate['id']}", headers=_auth_header(token))

    assert response.status_code == 404
    assert response.json() == {'error': 'User not found'}


@pytest.mark.parametrize(
    'payload',
    [
        {'name': 'Ravi Kumar', 'party': 'Green Party', 'age': 'forty'},
        {'name': 'Ravi Kumar', 'party': '   ', 'age': 45},
        {'name': 'Ravi Kumar', 'age': 45},
    ],
)
def test_create_candidate_rejects_invalid_body_with_400(client, db_session, admin_token, payload) -> None:
    response = client.post('/candidate', json=payload, headers=_auth_header(admin_token))

    assert response.status_code == 400
    assert response.json()['error'] == 'Invalid request body'
    assert db_session.query(Candidate).count() == 0
