from jellyfin_mcp.application.ranker import (
    MAX_RECOMMENDATIONS, mood_tokens, score_candidate, simple_rank,
)

SEED = {
    'Id': 'seed',
    'Genres': ['Drama', 'Mystery'],
    'People': [{'Name': 'Ann'}, {'Name': 'Bo'}],
    'ProductionYear': 2000,
}


class TestScoreCandidate:

    def test_shared_genres_people_and_era(self):
        candidate = {
            'Id': 'c1',
            'Genres': ['Mystery', 'Drama', 'Crime'],
            'People': [{'Name': 'Bo'}, {'Name': 'Cy'}],
            'ProductionYear': 2002,
        }

        rec = score_candidate(candidate, SEED)

        assert rec.item_id == 'c1'
        assert rec.score == 2 * 2 + 3 + 3
        assert rec.why == ['genres: Mystery, Drama', 'people: Bo', 'similar era']

    def test_distant_year_adds_nothing(self):
        rec = score_candidate({'Id': 'c2', 'ProductionYear': 1970}, SEED)
        assert rec.score == 0
        assert rec.why == []

    def test_mood_tokens(self):
        candidate = {'Id': 'c3', 'Name': 'Rainy Day', 'Overview': 'A cozy tale', 'Genres': ['Romance']}

        rec = score_candidate(candidate, tokens=mood_tokens('Cozy, rainy romance!'))

        assert rec.score == 3
        assert rec.why == ['mood matches (3)']


class TestSimpleRank:

    def test_orders_and_drops_zero_scores(self):
        candidates = [
            {'Id': 'weak', 'Genres': ['Drama']},
            {'Id': 'none', 'Genres': ['Western']},
            {'Id': 'strong', 'Genres': ['Drama', 'Mystery']},
        ]

        ranked = simple_rank(candidates, seed=SEED)

        assert [r.item_id for r in ranked] == ['strong', 'weak']

    def test_caps_result_size(self):
        candidates = [{'Id': str(i), 'Genres': ['Drama']} for i in range(80)]
        assert len(simple_rank(candidates, seed=SEED)) == MAX_RECOMMENDATIONS

    def test_no_signals(self):
        assert simple_rank([{'Id': 'a'}]) == []
