import unittest

from errors import InvalidQuery
from query_builder import HAPPY_MARKERS, MAX_QUERY_LENGTH, QueryBuilder, has_operators

CLAUSE = "(" + " OR ".join(HAPPY_MARKERS) + ")"


class QueryBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.builder = QueryBuilder()

    def test_plain_term_is_anded_with_sentiment_clause(self):
        self.assertEqual(self.builder.build("banana"), f"banana {CLAUSE}")

    def test_every_query_contains_the_clause_and_is_idempotent(self):
        for term in ["banana", "ice cream", "from:nasa", "#caturday", '"good morning"', "cats -dogs"]:
            query = self.builder.build(term)
            self.assertIn(CLAUSE, query)
            self.assertEqual(query, self.builder.build(term))

    def test_operator_terms_pass_through_in_parentheses(self):
        self.assertEqual(self.builder.build("from:nasa OR @esa"), f"(from:nasa OR @esa) {CLAUSE}")
        self.assertEqual(self.builder.build('"good morning"'), f'("good morning") {CLAUSE}')

    def test_operator_terms_keep_their_spacing(self):
        self.assertEqual(self.builder.build(' "a  b" from:nasa '), f'("a  b" from:nasa) {CLAUSE}')

    def test_emoticons_and_urls_are_not_operators(self):
        self.assertEqual(self.builder.build("happy:)"), f"happy:) {CLAUSE}")
        self.assertFalse(has_operators("https://example.com"))
        self.assertFalse(has_operators("note: later"))

    def test_whitespace_is_collapsed(self):
        self.assertEqual(self.builder.build("  ice   cream "), f"ice cream {CLAUSE}")

    def test_lang_and_retweet_filters(self):
        builder = QueryBuilder(lang="en", exclude_retweets=True)
        self.assertEqual(builder.build("banana"), f"banana {CLAUSE} lang:en -is:retweet")

    def test_invalid_lang_is_rejected(self):
        with self.assertRaises(InvalidQuery):
            QueryBuilder(lang="english")

    def test_empty_term_is_rejected(self):
        for term in ["", "   ", None]:
            with self.assertRaises(InvalidQuery):
                self.builder.build(term)

    def test_control_characters_are_rejected(self):
        for term in ["ban\nana", "ban\tana", "ban\x00ana"]:
            with self.assertRaises(InvalidQuery):
                self.builder.build(term)

    def test_length_limit(self):
        room = MAX_QUERY_LENGTH - len(CLAUSE) - 1
        self.assertEqual(len(self.builder.build("a" * room)), MAX_QUERY_LENGTH)
        with self.assertRaises(InvalidQuery):
            self.builder.build("a" * (room + 1))

    def test_encode_escapes_reserved_characters(self):
        encoded = QueryBuilder.encode("from:nasa #space & more")
        self.assertEqual(encoded, "from%3Anasa%20%23space%20%26%20more")

    def test_operator_detection(self):
        self.assertFalse(has_operators("banana split"))
        self.assertFalse(has_operators("don't stop"))
        for term in ["from:nasa", "@nasa", "#space", "$TSLA", "cats -dogs", "cats OR dogs", "(a b)",
                     "lang:en", "-is:retweet", "cats has:media"]:
            self.assertTrue(has_operators(term), term)


if __name__ == "__main__":
    unittest.main()
