# Upper-case tokens name productions and may be expanded; everything else is a
# literal word. A trailing "_CO" stands for a comma after the word. Nested lists
# come out as parenthesized groups.
GRAMMARS = {
  # Hofstadter's recursive pasta acronyms (Metamagical Themas)
  "Oodles": {
    "TOMATOES": ["TOMATOES", "on", "MACARONI", ["and", "TOMATOES", "only"],
                 "exquisitely", "SPICED"],
    "MACARONI": ["MACARONI", "and", "CHEESE", ["a", "REPAST", "of", "Naples_CO", "Italy"]],
    "REPAST": ["rather", "extraordinary", "PASTA", "and", "SAUCE_CO", "typical"],
    "CHEESE": ["cheddar_CO", "havarti_CO", "emmentaler",
               ["especially", "SHARP", "emmenthaler"]],
    "SHARP": ["strong_CO", "hearty_CO", "and", "rather", "pungent"],
    "SPICED": ["sweetly", "pickled", "in", "CHEESE", "ENDIVE", "dressing"],
    "ENDIVE": ["egg", "NOODLES_CO", "dipped", "in", "vinegar", "eggnog"],
    "NOODLES": ["NOODLES", ["oodles", "of", "delicious", "LINGUINI"], "elegantly", "served"],
    "LINGUINI": ["LAMBCHOPS", ["including", "NOODLES"],
                 "gotten", "usually", "in", "Northern", "Italy"],
    "PASTA": ["PASTA", "and", "SAUCE", ["that's", "ALL!"]],
    "ALL!": ["a", "lucious", "lunch"],
    "SAUCE": ["shad", "and", "unusual", "COFFEE", ["excellente!"]],
    "SHAD": ["SPAGHETTI_CO", "heated", "al", "dente"],
    "SPAGHETTI": ["standard", "PASTA_CO", "always", "good_CO", "hot", "particularly",
                  ["twist_CO", "then", "ingest"]],
    "COFFEE": ["choice", "of", "fine", "flavors_CO", "particularly", "ESPRESSO"],
    "ESPRESSO": ["excellent_CO", "strong_CO", "powerful_CO", "rich", "ESPRESSO_CO",
                 "suppressing", "sleep", "outrageously"],
    "BASTA!": ["belly", "all", "stuffed", ["tummy", "ache!"]],
    "LAMBCHOPS": ["LASAGNE", "and", "meatballs_CO", "casually", "heaped", "onto",
                  "PASTA", "SAUCE"],
    "LASAGNE": ["LINGUINI", "and", "SAUCE", "and", "GARLIC", ["NOODLES", "everywhere!"]],
    "RHUBARB": ["RAVIOLI_CO", "heated", "under", "butter", "and", "RHUBARB", ["BASTA!"]],
    "RAVIOLI": ["RIGATONI", "and", "vongole", "in", "oil_CO", "lavishly", "introduced"],
    "RIGATONI": ["rich", "Italian", "GNOCCHI", "and", "TOMATOES",
                 ["or", "NOODLES", "instead"]],
    "GNOCCHI": ["GARLIC", "NOODLES", "over", "crisp", "CHEESE_CO", "heated", "immediately"],
    "GARLIC": ["green", "and", "red", "LASAGNE", "in", "CHEESE"],
  },

  # direct self-reference; Y is never declared and stays literal
  "SelfReference": {
    "X": ["X", "and", "Y"],
  },

  # mutual recursion without any terminating alternative
  "MutualRecursion": {
    "PING": ["ping", "PONG_CO"],
    "PONG": ["pong", "PING"],
  },
}
