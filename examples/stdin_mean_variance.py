import welford


def read_values():
    while True:
        try:
            line = input("Please enter a real number (anything else to quit): ")
        except EOFError:
            return

        try:
            value = float(line.strip())
        except ValueError:
            return

        yield value


if __name__ == "__main__":
    acc = welford.Accumulator()

    for value in read_values():
        try:
            acc.update(value)
        except welford.exceptions.InvalidValue:
            break

    mean = None if acc.is_empty() else acc.mean()
    try:
        variance = acc.sample_variance()
    except welford.exceptions.WelfordError:
        variance = None

    print("mean: {}".format(mean))
    print("variance: {}".format(variance))
