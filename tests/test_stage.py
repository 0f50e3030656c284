import pytest

from conference.decisions import build_review_stats, derive_stage

@pytest.mark.parametrize('final_decision, camera_ready, reviewed, expected', [
    (None, False, False, 'submitted'),
    (None, False, True, 'under_review'),
    (None, True, True, 'under_review'),
    ('reject', False, True, 'decided'),
    ('reject', True, True, 'decided'),
    ('accept', False, True, 'decided'),
    ('accept', True, True, 'camera_ready'),
    ('accept', True, False, 'camera_ready'),
])
def test_derive_stage(final_decision, camera_ready, reviewed, expected):
    assert derive_stage(final_decision, camera_ready, reviewed) == expected

def _row(reviewer_id, score, confidence, submitted_at=None):
    return {
        'reviewer_id': reviewer_id,
        'reviewer': {'id': reviewer_id, 'email': f'r{reviewer_id}@example.org', 'first_name': 'Rev', 'last_name': str(reviewer_id)},
        'review': {'score': score, 'confidence': confidence, 'submitted_at': submitted_at},
    }

def test_review_stats_average_complete_reviews_only():
    rows = [
        _row(1, 7, 4),
        _row(2, 8, 3),
        _row(3, 9, None),
        {'reviewer_id': 4, 'reviewer': {'id': 4, 'email': 'r4@example.org', 'first_name': 'Rev', 'last_name': '4'}, 'review': None},
    ]
    stats = build_review_stats(rows)
    assert stats['average_score'] == 7.5
    assert stats['average_confidence'] == 3.5
    assert stats['review_count'] == 4
    assert stats['completed_review_count'] == 2
    assert stats['pending_review_count'] == 2
    assert [s['reviewer_id'] for s in stats['scores']] == [1, 2, 3, 4]
    assert stats['scores'][0]['reviewer_name'] == 'Rev 1'

def test_review_stats_round_to_two_decimals():
    stats = build_review_stats([_row(1, 7, 4), _row(2, 8, 4), _row(3, 8, 5)])
    assert stats['average_score'] == 7.67
    assert stats['average_confidence'] == 4.33

def test_review_stats_without_reviews():
    stats = build_review_stats([])
    assert stats['average_score'] == 0
    assert stats['completed_review_count'] == 0
    assert stats['scores'] == []
